"""Running external commands as jobs: foreground, background and pipelines."""

from __future__ import annotations

import contextlib
import dataclasses
import errno
import functools
import os
import re
import signal
import subprocess
import sys
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

EX_USAGE = 64
EX_DATAERR = 65
EX_OSERR = 71
COMMAND_NOT_EXECUTABLE = 127

_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_FORK_ERRNOS = frozenset({errno.EAGAIN, errno.ENOMEM})
_JOB_CONTROL_SIGNALS = (
    signal.SIGINT,
    signal.SIGQUIT,
    signal.SIGTSTP,
    signal.SIGTTIN,
    signal.SIGTTOU,
)


@dataclass
class Job:
    """A group of processes started from one command line."""

    pgid: int
    command: str
    pids: list[int] = field(default_factory=list)
    background: bool = False
    completed: bool = False
    stopped: bool = False
    status: int = 0

    @property
    def exit_code(self) -> int:
        """Shell-style exit code for the last wait status recorded."""
        if os.WIFEXITED(self.status):
            return os.WEXITSTATUS(self.status)
        if os.WIFSIGNALED(self.status):
            return 128 + os.WTERMSIG(self.status)
        return 0


@dataclass
class Command:
    """One stage of a pipeline with its redirections."""

    args: list[str]
    background: bool = False
    input_file: str | None = None
    output_file: str | None = None
    append_file: str | None = None


class _LaunchError(Exception):
    def __init__(self, exit_code: int, message: str) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.message = message


def split_env_assignments(args: Sequence[str]) -> tuple[list[tuple[str, str]], list[str]]:
    """Separate leading ``NAME=value`` words from the command that follows them."""
    assignments: list[tuple[str, str]] = []
    for index, arg in enumerate(args):
        name, sep, value = arg.partition("=")
        if not sep or not _NAME_PATTERN.fullmatch(name):
            return assignments, list(args[index:])
        assignments.append((name, value))
    return assignments, []


def _set_priority_quietly(which: int, who: int, value: int) -> bool:
    try:
        os.setpriority(which, who, value)
    except OSError:
        return False
    return True


def _set_process_priority(pgid: int, foreground: bool) -> None:
    if not foreground:
        _set_priority_quietly(os.PRIO_PGRP, pgid, 4)
        return
    if _set_priority_quietly(os.PRIO_PGRP, pgid, -10):
        return
    _set_priority_quietly(os.PRIO_PGRP, pgid, 0)
    _set_priority_quietly(os.PRIO_PROCESS, pgid, 0)
    if hasattr(os, "sched_setscheduler") and hasattr(os, "SCHED_BATCH"):
        with contextlib.suppress(OSError):
            os.sched_setscheduler(pgid, os.SCHED_BATCH, os.sched_param(0))


def _reset_signals(signals: Iterable[signal.Signals], handler: signal.Handlers) -> None:
    for sig in signals:
        signal.signal(sig, handler)


def _foreground_child_setup() -> None:
    os.setpgid(0, 0)
    _set_priority_quietly(os.PRIO_PROCESS, 0, 0)
    _reset_signals((*_JOB_CONTROL_SIGNALS, signal.SIGCHLD), signal.SIG_DFL)
    signal.pthread_sigmask(
        signal.SIG_UNBLOCK,
        {signal.SIGINT, signal.SIGQUIT, signal.SIGTSTP, signal.SIGCHLD},
    )


def _background_child_setup() -> None:
    os.setpgid(0, 0)
    _set_priority_quietly(os.PRIO_PROCESS, 0, 0)
    _reset_signals(_JOB_CONTROL_SIGNALS, signal.SIG_IGN)


def _own_group_child_setup() -> None:
    os.setpgid(0, 0)


def _pipeline_child_setup(pgid: int) -> None:
    os.setpgid(0, pgid)
    _reset_signals((*_JOB_CONTROL_SIGNALS, signal.SIGCHLD), signal.SIG_DFL)


def _join_group(pid: int, pgid: int) -> None:
    try:
        os.setpgid(pid, pgid)
    except OSError as exc:
        if exc.errno not in (errno.EACCES, errno.EPERM, errno.ESRCH):
            print(f"setpgid failed in parent: {exc.strerror}", file=sys.stderr)


def _open_redirect(stack: contextlib.ExitStack, path: str, flags: int) -> int:
    try:
        fd = os.open(path, flags, 0o644)
    except OSError as exc:
        raise _LaunchError(1, f"cjsh: {path}: {exc.strerror}") from exc
    stack.callback(os.close, fd)
    return fd


def _open_input(stack: contextlib.ExitStack, path: str) -> int:
    return _open_redirect(stack, path, os.O_RDONLY)


def _open_output(stack: contextlib.ExitStack, path: str, append: bool) -> int:
    mode = os.O_APPEND if append else os.O_TRUNC
    return _open_redirect(stack, path, os.O_WRONLY | os.O_CREAT | mode)


def _launch(args: Sequence[str], **kwargs) -> subprocess.Popen:
    try:
        return subprocess.Popen(list(args), **kwargs)
    except subprocess.SubprocessError as exc:
        raise _LaunchError(EX_OSERR, f"cjsh: Failed to fork process: {exc}") from exc
    except OSError as exc:
        reason = exc.strerror or str(exc)
        if exc.errno in _FORK_ERRNOS:
            raise _LaunchError(EX_OSERR, f"cjsh: Failed to fork process: {reason}") from exc
        raise _LaunchError(
            COMMAND_NOT_EXECUTABLE,
            f"cjsh: command failed to execute: ( {args[0]} ) -> {reason}",
        ) from exc


class JobManager:
    """Starts external commands and keeps track of the jobs they form."""

    def __init__(self, interactive: bool | None = None, terminal_fd: int = 0) -> None:
        self.terminal_fd = terminal_fd
        self.interactive = os.isatty(terminal_fd) if interactive is None else interactive
        self.shell_pgid = os.getpgrp()
        self.last_exit_code = 0
        self._jobs: dict[int, Job] = {}
        self._next_job_id = 1
        self._processes: dict[int, subprocess.Popen] = {}
        self._lock = threading.Lock()
        self._error_lock = threading.Lock()
        self._error = ""

    def __enter__(self) -> JobManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def error(self) -> str:
        """Description of the outcome of the last operation."""
        with self._error_lock:
            return self._error

    def set_error(self, message: str) -> None:
        with self._error_lock:
            self._error = message

    def close(self) -> None:
        """Send SIGTERM to every process of every unfinished job."""
        with self._lock:
            for job in self._jobs.values():
                if job.completed:
                    continue
                for pid in job.pids:
                    with contextlib.suppress(OSError):
                        os.kill(pid, signal.SIGTERM)

    def _fail(self, error: _LaunchError) -> int:
        print(error.message, file=sys.stderr)
        self.set_error(error.message)
        self.last_exit_code = error.exit_code
        return error.exit_code

    def _register(self, proc: subprocess.Popen) -> None:
        self._processes[proc.pid] = proc

    def _release(self, pid: int, status: int) -> None:
        if not (os.WIFEXITED(status) or os.WIFSIGNALED(status)):
            return
        proc = self._processes.pop(pid, None)
        if proc is not None:
            proc.returncode = os.waitstatus_to_exitcode(status)

    def _assign_environment(self, assignments: list[tuple[str, str]]) -> int:
        for name, value in assignments:
            os.environ[name] = value
        self.set_error("Environment variables set")
        self.last_exit_code = 0
        return 0

    def execute_sync(self, args: Sequence[str]) -> int:
        """Run a command in the foreground and return its exit code."""
        if not args:
            self.set_error("cjsh: Failed to parse command")
            self.last_exit_code = EX_DATAERR
            return EX_DATAERR

        assignments, command = split_env_assignments(args)
        if not command:
            return self._assign_environment(assignments)

        env = {**os.environ, **dict(assignments)}
        try:
            proc = _launch(command, env=env, preexec_fn=_foreground_child_setup)
        except _LaunchError as err:
            return self._fail(err)
        self._register(proc)
        _join_group(proc.pid, proc.pid)

        job_id = self.add_job(Job(pgid=proc.pid, command=args[0], pids=[proc.pid]))
        self._put_in_foreground(job_id, cont=False)

        with self._lock:
            job = self._jobs.get(job_id)
            exit_code = job.exit_code if job is not None and job.completed else 0

        self.set_error(
            "command completed successfully"
            if exit_code == 0
            else f"command failed with exit code {exit_code}"
        )
        self.last_exit_code = exit_code
        return exit_code

    def execute_async(self, args: Sequence[str]) -> int:
        """Start a command as a background job."""
        if not args:
            self.set_error("cjsh: Failed to parse command")
            self.last_exit_code = EX_DATAERR
            return EX_DATAERR

        assignments, command = split_env_assignments(args)
        if not command:
            return self._assign_environment(assignments)

        env = {**os.environ, **dict(assignments)}
        try:
            proc = _launch(command, env=env, preexec_fn=_background_child_setup)
        except _LaunchError as err:
            return self._fail(err)
        self._register(proc)
        _join_group(proc.pid, proc.pid)

        job_id = self.add_job(
            Job(pgid=proc.pid, command=args[0], pids=[proc.pid], background=True)
        )
        self.set_error("Background job started")
        print(f"[{job_id}] {proc.pid}")
        self.last_exit_code = 0
        return 0

    def execute_pipeline(self, commands: Sequence[Command]) -> int:
        """Run the stages of a pipeline connected by pipes."""
        commands = list(commands)
        if not commands:
            self.set_error("cjsh: Empty pipeline")
            self.last_exit_code = EX_USAGE
            return EX_USAGE
        if any(not command.args for command in commands):
            self.set_error("cjsh: Empty command in pipeline")
            print(self.error, file=sys.stderr)
            return 1

        if len(commands) == 1:
            command = commands[0]
            if command.background:
                self.execute_async(command.args)
                return 0
            return self._run_single(command)
        return self._run_pipeline(commands)

    def _run_single(self, command: Command) -> int:
        try:
            with contextlib.ExitStack() as stack:
                stdin = _open_input(stack, command.input_file) if command.input_file else None
                stdout = None
                if command.output_file:
                    stdout = _open_output(stack, command.output_file, append=False)
                if command.append_file:
                    stdout = _open_output(stack, command.append_file, append=True)
                proc = _launch(
                    command.args,
                    stdin=stdin,
                    stdout=stdout,
                    preexec_fn=_own_group_child_setup,
                )
        except _LaunchError as err:
            return self._fail(err)
        self._register(proc)

        job_id = self.add_job(Job(pgid=proc.pid, command=command.args[0], pids=[proc.pid]))
        self._put_in_foreground(job_id, cont=False)
        return 0

    def _run_pipeline(self, commands: list[Command]) -> int:
        processes: list[subprocess.Popen] = []
        pgid = 0
        last_index = len(commands) - 1
        try:
            with contextlib.ExitStack() as stack:
                previous_output = None
                for index, command in enumerate(commands):
                    if index == 0:
                        stdin = (
                            _open_input(stack, command.input_file)
                            if command.input_file
                            else None
                        )
                    else:
                        stdin = previous_output
                    if index < last_index:
                        stdout = subprocess.PIPE
                    elif command.output_file:
                        stdout = _open_output(stack, command.output_file, append=False)
                    elif command.append_file:
                        stdout = _open_output(stack, command.append_file, append=True)
                    else:
                        stdout = None

                    proc = _launch(
                        command.args,
                        stdin=stdin,
                        stdout=stdout,
                        preexec_fn=functools.partial(_pipeline_child_setup, pgid),
                    )
                    if previous_output is not None:
                        previous_output.close()
                    previous_output = proc.stdout
                    if index == 0:
                        pgid = proc.pid
                    _join_group(proc.pid, pgid)
                    processes.append(proc)
                    if proc.stdout is not None:
                        stack.callback(proc.stdout.close)
        except _LaunchError as err:
            for proc in processes:
                with contextlib.suppress(OSError):
                    proc.terminate()
                proc.wait()
            return self._fail(err)

        for proc in processes:
            self._register(proc)

        job = Job(
            pgid=pgid,
            command=commands[0].args[0] + " | ...",
            pids=[proc.pid for proc in processes],
            background=commands[-1].background,
        )
        job_id = self.add_job(job)
        if job.background:
            self._put_in_background(job_id, cont=False)
            print(f"[{job_id}] {pgid}")
        else:
            self._put_in_foreground(job_id, cont=False)
        return 0

    def add_job(self, job: Job) -> int:
        """Record a job and return the id given to it."""
        with self._lock:
            job_id = self._next_job_id
            self._next_job_id += 1
            self._jobs[job_id] = job
            return job_id

    def remove_job(self, job_id: int) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def update_job_status(self, job_id: int, completed: bool, stopped: bool, status: int) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                job.completed = completed
                job.stopped = stopped
                job.status = status

    def _give_terminal_to(self, pgid: int) -> None:
        if not self.interactive or not os.isatty(self.terminal_fd):
            return
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGTTOU})
        try:
            os.tcsetpgrp(self.terminal_fd, pgid)
        except OSError as exc:
            if exc.errno not in (errno.ENOTTY, errno.EINVAL):
                print(f"tcsetpgrp: {exc.strerror}", file=sys.stderr)
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)

    def _continue_group(self, pgid: int) -> None:
        try:
            os.killpg(pgid, signal.SIGCONT)
        except OSError as exc:
            print(f"kill (SIGCONT): {exc.strerror}", file=sys.stderr)

    def _take_job(self, job_id: int, cont: bool) -> tuple[int, bool]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise KeyError(f"cjsh: No such job {job_id}")
            resume = cont and job.stopped
            if resume:
                job.stopped = False
            return job.pgid, resume

    def _put_in_foreground(self, job_id: int, cont: bool) -> None:
        pgid, resume = self._take_job(job_id, cont)
        self._give_terminal_to(pgid)
        _set_process_priority(pgid, foreground=True)
        if resume:
            self._continue_group(pgid)
        try:
            self.wait_for_job(job_id)
        finally:
            self._give_terminal_to(self.shell_pgid)

    def _put_in_background(self, job_id: int, cont: bool) -> None:
        pgid, resume = self._take_job(job_id, cont)
        _set_process_priority(pgid, foreground=False)
        if resume:
            self._continue_group(pgid)

    def wait_for_job(self, job_id: int) -> None:
        """Block until every process of the job has ended or one has stopped."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return
            pgid = job.pgid
            remaining = list(job.pids)

        status = 0
        stopped = False
        while remaining:
            try:
                pid, status = os.waitpid(-pgid, os.WUNTRACED)
            except ChildProcessError:
                remaining.clear()
                break
            except OSError as exc:
                print(f"waitpid: {exc.strerror}", file=sys.stderr)
                break
            if pid in remaining:
                remaining.remove(pid)
            if os.WIFSTOPPED(status):
                stopped = True
                break
            self._release(pid, status)

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return
            job.status = status
            if stopped:
                job.stopped = True
                self.last_exit_code = 128 + signal.SIGTSTP
                return
            job.completed = True
            job.stopped = False
            if os.WIFEXITED(status):
                code = os.WEXITSTATUS(status)
                self.last_exit_code = code
                self.set_error(
                    "command completed successfully"
                    if code == 0
                    else f"command failed with exit code {code}"
                )
            elif os.WIFSIGNALED(status):
                sig = os.WTERMSIG(status)
                self.last_exit_code = 128 + sig
                self.set_error(f"command terminated by signal {sig}")

    def reap(self) -> list[int]:
        """Collect finished or stopped children without blocking.

        Returns the ids of jobs that completed during this call.
        """
        finished: list[int] = []
        with self._lock:
            for job_id, job in self._jobs.items():
                if job.completed:
                    continue
                for pid in list(job.pids):
                    try:
                        reaped, status = os.waitpid(pid, os.WNOHANG | os.WUNTRACED)
                    except ChildProcessError:
                        job.pids.remove(pid)
                        continue
                    if reaped == 0:
                        continue
                    if os.WIFSTOPPED(status):
                        job.stopped = True
                        job.status = status
                        continue
                    job.pids.remove(pid)
                    self._release(pid, status)
                    if not job.pids:
                        job.status = status
                if not job.pids:
                    job.completed = True
                    job.stopped = False
                    finished.append(job_id)
                    if job.background:
                        print(f"\n[{job_id}] Done\t{job.command}")
        return finished

    def terminate_all(self) -> None:
        """Send SIGTERM to every unfinished job and mark it finished."""
        with self._lock:
            for job_id, job in self._jobs.items():
                if job.completed:
                    continue
                try:
                    os.killpg(job.pgid, signal.SIGTERM)
                except ProcessLookupError:
                    pass
                except OSError as exc:
                    print(
                        f"kill (SIGTERM) in terminate_all: {exc.strerror}",
                        file=sys.stderr,
                    )
                job.completed = True
                job.stopped = False
                job.status = 0
                print(f"[{job_id}] Terminated\t{job.command}")
        self.set_error("All child processes terminated")

    def jobs(self) -> dict[int, Job]:
        """A snapshot of every recorded job by id."""
        with self._lock:
            return {
                job_id: dataclasses.replace(job, pids=list(job.pids))
                for job_id, job in self._jobs.items()
            }
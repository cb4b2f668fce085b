import os
import signal
import subprocess
import sys
import textwrap

import pytest

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="SIGTERM handling is POSIX-only")

ECHO_CHILD = textwrap.dedent(
    """
    import sys
    import time

    while True:
        line = sys.stdin.readline()
        if not line:
            sys.exit(9)
        sys.stdout.write(line)
        sys.stdout.flush()
        if line.strip() == "exit":
            time.sleep(float(sys.argv[1]) if len(sys.argv) > 1 else 0)
            sys.exit(3)
    """
)


@pytest.fixture
def echo_child(tmp_path):
    script = tmp_path / "echo_child.py"
    script.write_text(ECHO_CHILD)
    return script


@pytest.fixture
def wrapper_env(src_dir):
    env = os.environ.copy()
    existing = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = f"{src_dir}{os.pathsep}{existing}" if existing else str(src_dir)
    for name in ("GRACETERM_DEBUG", "GRACETERM_LOG_FILE", "GRACETERM_EXIT_ZERO", "GRACETERM_SHUTDOWN"):
        env.pop(name, None)
    return env


def _start_wrapper(args, env, cwd):
    return subprocess.Popen(
        [sys.executable, "-m", "graceterm", *args],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
        cwd=cwd,
    )


def test_sigterm_sends_shutdown_command_after_relayed_lines(echo_child, wrapper_env, tmp_path):
    proc = _start_wrapper(
        ["--command", "exit", "--", sys.executable, "-u", str(echo_child)],
        wrapper_env,
        tmp_path,
    )
    proc.stdin.write(b"hello\nworld\n")
    proc.stdin.flush()

    assert proc.stdout.readline() == b"hello\n"
    assert proc.stdout.readline() == b"world\n"

    proc.send_signal(signal.SIGTERM)
    rest, stderr = proc.communicate(timeout=15)

    assert b"hello\nworld\n" + rest == b"hello\nworld\n\nexit\n"
    assert proc.returncode == 3, stderr.decode()


def test_second_sigterm_does_not_repeat_the_sequence(echo_child, wrapper_env, tmp_path):
    proc = _start_wrapper(
        ["-c", "exit", "--", sys.executable, "-u", str(echo_child), "1.0"],
        wrapper_env,
        tmp_path,
    )
    proc.stdin.write(b"ping\n")
    proc.stdin.flush()
    assert proc.stdout.readline() == b"ping\n"

    proc.send_signal(signal.SIGTERM)
    assert proc.stdout.readline() == b"\n"
    assert proc.stdout.readline() == b"exit\n"
    proc.send_signal(signal.SIGTERM)

    rest, stderr = proc.communicate(timeout=15)

    assert rest == b""
    assert proc.returncode == 3, stderr.decode()


def test_missing_executable_exits_one(wrapper_env, tmp_path):
    proc = _start_wrapper(["--", str(tmp_path / "no-such-binary")], wrapper_env, tmp_path)
    stdout, stderr = proc.communicate(timeout=15)

    assert proc.returncode == 1
    assert b"Failed to spawn" in stderr
    assert stdout == b""


def test_child_sees_end_of_input_only_when_it_exits_itself(echo_child, wrapper_env, tmp_path):
    # Closing the wrapper's stdin ends the relay but never closes the child's stdin.
    proc = _start_wrapper(
        ["--debug", "--command", "exit", "--", sys.executable, "-u", str(echo_child)],
        wrapper_env,
        tmp_path,
    )
    proc.stdin.write(b"one\n")
    proc.stdin.close()
    assert proc.stdout.readline() == b"one\n"

    proc.send_signal(signal.SIGTERM)
    rest = proc.stdout.read()
    stderr = proc.stderr.read()
    proc.wait(timeout=15)

    assert rest == b"\nexit\n"
    assert proc.returncode == 3
    assert b"Input closed" in stderr


def test_child_exiting_mid_input_always_mirrors_its_code(wrapper_env, tmp_path):
    child = [sys.executable, "-c", "import sys; sys.stdin.readline(); sys.exit(5)"]
    codes = []
    for _ in range(5):
        proc = _start_wrapper(["--", *child], wrapper_env, tmp_path)
        proc.communicate(input=b"a\n" + b"b\n" * 2000, timeout=15)
        codes.append(proc.returncode)

    assert codes == [5] * 5

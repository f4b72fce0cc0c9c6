"""Stand-in for ``inkscape --shell`` used by the proxy tests.

Speaks the same line protocol: banner, then ``> `` (no newline) after every
command line.  Understands a handful of real actions plus test-only ones:

  echo:TEXT      print TEXT on stdout
  lines:N        print N numbered lines
  split:TEXT     print TEXT in two writes, 0.2s apart
  warn:TEXT      print "WARNING: TEXT" on stderr
  fail:TEXT      print TEXT on stderr
  hold:SECONDS   sleep before answering
  crash          exit with code 3
  quit           exit with code 0

Flags (after --shell):
  --count-file=PATH   append one line per start
  --exit-code=N       exit with N right after starting
  --silent-start      never print the first prompt
"""

import os
import select
import sys
import time

BANNER = (
    "Inkscape interactive shell mode. Type 'action-list' to list all actions. "
    "Type 'quit' to quit."
)


def out(text):
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


def err(text):
    sys.stderr.write(text + "\n")
    sys.stderr.flush()


def prompt():
    sys.stdout.write("> ")
    sys.stdout.flush()


def stdin_pending():
    readable, _, _ = select.select([0], [], [], 0)
    return bool(readable)


def run_action(action, state):
    name, _, arg = action.partition(":")
    if name == "file-open":
        if not os.path.exists(arg):
            err(f"file_open: failed to open: {arg}")
            return None
        state["document"] = arg
    elif name == "export-filename":
        state["export"] = arg
    elif name == "export-do":
        document = state.get("document")
        if document is None:
            err("export_do: no document open")
            return None
        with open(document, "rb") as src, open(state.get("export", "out.pdf"), "wb") as dst:
            dst.write(b"%PDF-1.5\n% fake export\n" + src.read())
    elif name == "file-close":
        state.pop("document", None)
    elif name == "echo":
        out(arg)
    elif name == "split":
        sys.stdout.write(arg[:1])
        sys.stdout.flush()
        time.sleep(0.2)
        out(arg[1:])
    elif name == "lines":
        for i in range(int(arg)):
            out(f"line {i}")
    elif name == "warn":
        err(f"WARNING: {arg}")
    elif name == "fail":
        err(arg)
    elif name == "hold":
        time.sleep(float(arg))
    elif name == "crash":
        return 3
    elif name == "quit":
        return 0
    else:
        err(f"could not find action for: {name}")
    return None


def main():
    flags = dict(a.partition("=")[::2] for a in sys.argv[1:])
    if "--shell" not in flags:
        err("expected --shell")
        return 2

    if "--count-file" in flags:
        with open(flags["--count-file"], "a") as f:
            f.write("start\n")
    if "--exit-code" in flags:
        return int(flags["--exit-code"])

    out(BANNER)
    if "--silent-start" not in flags:
        prompt()

    state = {}
    pending = b""
    while True:
        while b"\n" not in pending:
            chunk = os.read(0, 4096)
            if not chunk:
                return 0
            pending += chunk
        line, pending = pending.split(b"\n", 1)

        for action in line.decode().split(";"):
            action = action.strip()
            if not action:
                continue
            code = run_action(action, state)
            if code is not None:
                return code

        # The next command line must not arrive before this prompt.
        if pending or stdin_pending():
            err("OVERLAP: command received before prompt")
        prompt()


if __name__ == "__main__":
    sys.exit(main())

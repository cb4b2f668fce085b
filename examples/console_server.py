"""Toy console server for trying graceterm by hand.

    graceterm --debug --command exit -- python -u examples/console_server.py

Type lines to see them echoed, then send SIGTERM to the graceterm process.
"""
import sys

for line in sys.stdin:
    command = line.strip()
    if command == "exit":
        print("saving world... bye", flush=True)
        sys.exit(0)
    if command:
        print(f"server> {command}", flush=True)

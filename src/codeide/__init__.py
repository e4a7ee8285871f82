"""Interactive code execution backend.

This package lets a browser editor run Python, Java, C and C++ programs as
if at a local terminal: code is submitted over a WebSocket, input is
streamed to the running program and its output is streamed back.  A
stateless ``/run`` endpoint additionally proxies batch executions to Judge0.

The top-level modules include:

* ``config`` – configuration and toolchain discovery from environment variables.
* ``models`` – Pydantic models for protocol messages and HTTP bodies.
* ``workspace`` – per-session scratch directories.
* ``launcher`` – per-language strategies that build and start programs.
* ``bridge`` – streaming between a running process and the client.
* ``session`` – the per-connection state machine tying the above together.
* ``api`` – FastAPI application exposing HTTP and WebSocket endpoints.
"""

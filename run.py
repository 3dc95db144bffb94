"""
RUN SCRIPT - Start the J.A.R.V.I.S server
=======================================

PURPOSE:
  Single entry point to start the backend the Jarvis browser client talks to.

WHAT IT DOES:
  - Imports the FastAPI app from app.main.
  - Runs it with uvicorn on host 0.0.0.0 and port 8000.
  - reload=True restarts the server when a Python file changes.

USAGE:
  python run.py

  API docs: http://localhost:8000/docs

NOTE:
  Set GEMINI_API_KEY in .env, or have every client send its own "api_key".
"""

import uvicorn

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",   # module:variable of the FastAPI app.
        host="0.0.0.0",   # Listen on all interfaces so the browser client can connect from another device.
        port=8000,
        reload=True
    )

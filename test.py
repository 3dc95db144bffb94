"""
JARVIS CONSOLE CLIENT - Manual test interface for the J.A.R.V.I.S API
======================================================================

PURPOSE:
This is a command-line stand-in for the browser client. It holds one project
and one thread in memory (the server keeps no chat state), streams answers from
/chat/stream as they arrive, and can ask for a thread title or an image.

USAGE:
    python test.py [file_to_attach ...]

    Make sure the server is running first: python run.py

COMMANDS:
    1 - Standard mode
    2 - High Reasoning mode
    /title - Generate a title for the current thread
    /image <prompt> - Generate an image (prints the data-URI length)
    /history - View the current thread
    /clear - Start a new thread
    /quit or /exit - Exit
"""

import base64
import mimetypes
import os
import sys
from uuid import uuid4

import requests


# -----------------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------------
BASE_URL = os.getenv("JARVIS_BASE_URL", "http://localhost:8000")
# Optional per-request key; when unset the server uses its own GEMINI_API_KEY.
API_KEY = os.getenv("JARVIS_CLIENT_API_KEY") or None

PROJECT = {"id": str(uuid4()), "name": "Console", "files": []}
THREAD = {"id": str(uuid4()), "title": None, "history": []}
CURRENT_MODE = "Standard"


# -----------------------------------------------------------------------------
# UI HELPERS
# -----------------------------------------------------------------------------

def print_header():
    print("\n" + "=" * 60)
    print("J.A.R.V.I.S - Console Client")
    print("=" * 60)
    print("\nModes:")
    print("  1 = Standard")
    print("  2 = High Reasoning")
    print("\nCommands:")
    print("  /title - Generate thread title")
    print("  /image <prompt> - Generate an image")
    print("  /history - See thread history")
    print("  /clear - Start new thread")
    print("  /quit - Exit")
    print("=" * 60 + "\n")


def attach_file(path):
    """Read a local file and add it to the project as a data-URI, like the browser does."""
    mime_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    with open(path, "rb") as f:
        payload = base64.b64encode(f.read()).decode("ascii")
    PROJECT["files"].append({
        "id": str(uuid4()),
        "name": os.path.basename(path),
        "type": mime_type,
        "content": f"data:{mime_type};base64,{payload}",
    })
    print(f"Attached {path} ({mime_type})")


def _error_detail(response):
    try:
        detail = response.json().get("detail")
        if isinstance(detail, str):
            return detail
    except ValueError:
        pass
    return f"{response.status_code} - {response.text}"


# -----------------------------------------------------------------------------
# API CALLS
# -----------------------------------------------------------------------------

def stream_message(message):
    """
    POST the prompt to /chat/stream and print fragments as they arrive.
    On success both the prompt and the full answer are appended to THREAD.
    """
    body = {
        "project": PROJECT,
        "thread": THREAD,
        "prompt": message,
        "mode": CURRENT_MODE,
        "api_key": API_KEY,
    }
    try:
        with requests.post(f"{BASE_URL}/chat/stream", json=body, stream=True, timeout=120) as response:
            if response.status_code != 200:
                print(f"Error: {_error_detail(response)}")
                return
            answer = []
            for fragment in response.iter_content(chunk_size=None, decode_unicode=True):
                if fragment:
                    answer.append(fragment)
                    print(fragment, end="", flush=True)
            print()
    except requests.exceptions.ConnectionError:
        print("Cannot connect to backend. Start it with: python run.py")
        return
    except requests.exceptions.Timeout:
        print("Request timed out.")
        return

    THREAD["history"].append({"role": "user", "content": message})
    THREAD["history"].append({"role": "assistant", "content": "".join(answer)})


def request_title():
    if not THREAD["history"]:
        return "Nothing to title yet"
    response = requests.post(
        f"{BASE_URL}/title",
        json={"history": THREAD["history"], "api_key": API_KEY},
        timeout=30,
    )
    if response.status_code != 200:
        return f"Error: {_error_detail(response)}"
    THREAD["title"] = response.json()["title"]
    return f"Title: {THREAD['title']}"


def request_image(prompt):
    response = requests.post(
        f"{BASE_URL}/image",
        json={"prompt": prompt, "api_key": API_KEY},
        timeout=120,
    )
    if response.status_code != 200:
        return f"Error: {_error_detail(response)}"
    data_uri = response.json()["data_uri"]
    return f"Image received ({len(data_uri)} chars of data-URI)"


def format_history():
    if not THREAD["history"]:
        return "No messages in this thread"
    output = f"\nThread {THREAD['title'] or 'Untitled Node'} ({len(THREAD['history'])} messages):\n"
    output += "-" * 60 + "\n"
    for i, msg in enumerate(THREAD["history"], 1):
        role = "You" if msg["role"] == "user" else "Jarvis"
        output += f"{i}. {role}: {msg['content']}\n"
    output += "-" * 60 + "\n"
    return output


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    global THREAD, CURRENT_MODE

    print_header()
    for path in sys.argv[1:]:
        attach_file(path)

    while True:
        try:
            user_input = input("\nYou: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if not user_input:
            continue
        if user_input == "1":
            CURRENT_MODE = "Standard"
            print("Switched to Standard mode")
        elif user_input == "2":
            CURRENT_MODE = "High Reasoning"
            print("Switched to High Reasoning mode")
        elif user_input == "/title":
            print(request_title())
        elif user_input.startswith("/image "):
            print(request_image(user_input[len("/image "):].strip()))
        elif user_input == "/history":
            print(format_history())
        elif user_input == "/clear":
            THREAD = {"id": str(uuid4()), "title": None, "history": []}
            print("New thread started.")
        elif user_input in ["/quit", "/exit"]:
            print("\nGoodbye!")
            break
        elif user_input.startswith("/"):
            print(f"Unknown command: {user_input}")
        else:
            print(f"Jarvis ({CURRENT_MODE}): ", end="", flush=True)
            stream_message(user_input)


if __name__ == "__main__":
    main()

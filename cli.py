"""CLI: chat with a running API from the terminal. Start the API first: python run_api.py."""
import argparse
import os

from dotenv import load_dotenv

load_dotenv()

from app.client import ChatTranscript, HttpTransport


def _print_bubble(role: str, content: str, error: bool = False) -> None:
    label = "gemini" if role == "assistant" else "you"
    if error:
        label += " (error)"
    print(f"[{label}] {content}\n")


def main() -> None:
    default_url = f"http://{os.getenv('HOST', '127.0.0.1')}:{os.getenv('PORT', '8000')}/api/chat"
    ap = argparse.ArgumentParser(description="Terminal client for /api/chat")
    ap.add_argument("--url", default=default_url, help="Chat endpoint URL")
    ap.add_argument("--prompt", "-p", help="Send a single message and exit")
    args = ap.parse_args()

    transcript = ChatTranscript(HttpTransport(args.url))
    greeting = transcript.messages[0]
    _print_bubble(greeting.role, greeting.content)

    prompts = [args.prompt] if args.prompt else None
    while True:
        if prompts is not None:
            if not prompts:
                break
            text = prompts.pop()
        else:
            try:
                text = input("> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if text.strip() in ("/quit", "/exit"):
                break
        reply = transcript.submit(text)
        if reply is None:
            continue
        if transcript.last_error:
            print(f"Error: {transcript.last_error}")
        _print_bubble(reply.role, reply.content, reply.error)


if __name__ == "__main__":
    main()

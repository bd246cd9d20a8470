import asyncio
import re

from .broadcast import SendMode
from .credentials import mask_secret
from .errors import SessionNotFoundError, UnsupportedProviderError
from .key_validator import KeyStatus
from .panel import ChatPanel, create_panel
from .providers.transport import create_http_client
from .runtime import init_runtime

MENTION_PATTERN = re.compile(r"^@(\d+)\s+(.+)$", re.DOTALL)

HELP_TEXT = """Commands:
  @<id> <text>                     Send to one session (individual mode)
  <text>                           Send to all sessions (broadcast mode)
  /list                            List sessions
  /add                             Add a session
  /remove <id>                     Remove a session
  /clear <id>                      Clear a session's messages
  /history <id>                    Show a session's messages
  /provider <id> <provider>        Change a session's provider
  /model <id> <model>              Change a session's model
  /system <id> [<prompt> | clear]  Show or set a session's system prompt
  /mode [individual | broadcast]   Show or set the send mode
  /keys                            Show API keys (masked)
  /keys set <provider> <secret>    Save an API key
  /keys test <provider>            Test the saved API key
  /help                            Show this help
  exit | quit                      Leave"""


def parse_mention(text):
    """Split '@<id> <text>' into (session id, text); None if not a mention."""
    match = MENTION_PATTERN.match(text.strip())
    if not match:
        return None
    return int(match.group(1)), match.group(2).strip()


def _parse_session_id(arg):
    """Parse a session id argument, printing an error when invalid."""
    try:
        return int(arg)
    except (TypeError, ValueError):
        print(f"Error: `{arg}` is not a session id.")
        return None


def _session_label(panel, session):
    display_name = panel.registry.display_name(session.provider_id)
    return f"#{session.id} {display_name}/{session.model_id}"


def _print_reply(panel, session_id, reply):
    if reply is None:
        return
    try:
        session = panel.get_session(session_id)
        label = _session_label(panel, session)
    except SessionNotFoundError:
        label = f"#{session_id}"
    print(f"[{label}]: {reply.content}")


def _handle_list(panel):
    for session in panel.sessions:
        flags = []
        if session.is_loading:
            flags.append("loading")
        if session.is_credential_invalid:
            flags.append("invalid key")
        suffix = f" ({', '.join(flags)})" if flags else ""
        print(f"{_session_label(panel, session)} - {len(session.messages)} messages{suffix}")


def _handle_add(panel):
    session = panel.create_session()
    if session is None:
        print(f"Error: the session limit ({panel.store.max_sessions}) has been reached.")
    else:
        print(f"Added session {_session_label(panel, session)}")


def _handle_remove(panel, args):
    session_id = _parse_session_id(args)
    if session_id is None:
        return
    if panel.remove_session(session_id):
        print(f"Removed session #{session_id}")
    else:
        print("Error: the last session cannot be removed.")


def _handle_clear(panel, args):
    session_id = _parse_session_id(args)
    if session_id is None:
        return
    panel.clear_session(session_id)
    print(f"Cleared session #{session_id}")


def _handle_history(panel, args):
    session_id = _parse_session_id(args)
    if session_id is None:
        return
    session = panel.get_session(session_id)
    if not session.messages:
        print("No messages yet.")
        return
    for message in session.messages:
        name = "You" if message.role.value == "user" else session.model_id
        print(f"[{name}]: {message.content}")


def _handle_provider(panel, args):
    parts = args.split()
    if len(parts) != 2:
        providers = ", ".join(panel.registry.provider_ids)
        print(f"Usage: /provider <id> <provider>  (providers: {providers})")
        return
    session_id = _parse_session_id(parts[0])
    if session_id is None:
        return
    session = panel.update_session(session_id, provider_id=parts[1])
    print(f"Session now uses {_session_label(panel, session)}")


def _handle_model(panel, args):
    parts = args.split()
    if len(parts) != 2:
        print("Usage: /model <id> <model>")
        return
    session_id = _parse_session_id(parts[0])
    if session_id is None:
        return
    try:
        session = panel.update_session(session_id, model_id=parts[1])
    except ValueError:
        models = ", ".join(panel.registry.get(panel.get_session(session_id).provider_id).models)
        print(f"Error: unknown model `{parts[1]}`. Available models: {models}")
        return
    print(f"Session now uses {_session_label(panel, session)}")


def _handle_system(panel, args):
    parts = args.split(None, 1)
    if not parts:
        print("Usage: /system <id> [<prompt> | clear]")
        return
    session_id = _parse_session_id(parts[0])
    if session_id is None:
        return
    prompt = parts[1].strip() if len(parts) > 1 else ""

    if not prompt:
        current = panel.get_session(session_id).system_prompt
        if current:
            print(f"Current system prompt: {current}")
        else:
            print("No system prompt is set.")
        return

    if prompt == "clear":
        panel.update_session(session_id, system_prompt="")
        print("System prompt cleared.")
        return

    panel.update_session(session_id, system_prompt=prompt)
    print(f"System prompt set: {prompt}")


def _handle_mode(panel, args):
    if not args:
        print(f"Send mode: {panel.send_mode.value}")
        return
    try:
        mode = panel.set_send_mode(args.strip().lower())
    except ValueError:
        print("Usage: /mode [individual | broadcast]")
        return
    print(f"Send mode set to {mode.value}")


async def _handle_keys(panel, args):
    parts = args.split()
    if not parts:
        for descriptor in panel.providers:
            status = panel.key_statuses.get(descriptor.provider_id)
            suffix = f" [{status.value}]" if status else ""
            secret = mask_secret(panel.credentials.get(descriptor.provider_id))
            print(f"{descriptor.display_name} ({descriptor.provider_id}): {secret}{suffix}")
        return

    action = parts[0]
    if action == "set" and len(parts) == 3:
        provider_id, secret = parts[1], parts[2]
        if provider_id not in panel.registry:
            print(f"Error: unknown provider `{provider_id}`.")
            return
        cleared = panel.save_credentials({provider_id: secret})
        print(f"Saved API key for {panel.registry.display_name(provider_id)}")
        if cleared:
            print(f"Sessions re-enabled: {', '.join(f'#{i}' for i in cleared)}")
    elif action == "test" and len(parts) == 2:
        provider_id = parts[1]
        status = await panel.test_credential(provider_id)
        if status == KeyStatus.VALID:
            print(f"{panel.registry.display_name(provider_id)}: key is valid")
        elif status == KeyStatus.INVALID:
            print(f"{panel.registry.display_name(provider_id)}: key is invalid")
        else:
            print(f"{panel.registry.display_name(provider_id)}: key could not be tested")
    else:
        print("Usage: /keys | /keys set <provider> <secret> | /keys test <provider>")


async def _handle_command(panel, prompt):
    """Dispatch a slash command."""
    parts = prompt.split(None, 1)
    command = parts[0]
    args = parts[1] if len(parts) > 1 else ""

    handlers = {
        "/list": lambda: _handle_list(panel),
        "/add": lambda: _handle_add(panel),
        "/remove": lambda: _handle_remove(panel, args),
        "/clear": lambda: _handle_clear(panel, args),
        "/history": lambda: _handle_history(panel, args),
        "/provider": lambda: _handle_provider(panel, args),
        "/model": lambda: _handle_model(panel, args),
        "/system": lambda: _handle_system(panel, args),
        "/mode": lambda: _handle_mode(panel, args),
        "/help": lambda: print(HELP_TEXT),
    }

    try:
        if command == "/keys":
            await _handle_keys(panel, args)
        elif command in handlers:
            handlers[command]()
        else:
            print(f"Error: `{command}` is not a known command. Type /help for the list.")
    except SessionNotFoundError as e:
        print(f"Error: {e}")
    except UnsupportedProviderError as e:
        print(f"Error: {e.describe(e.provider_id)}")


async def _send_to_session(panel, session_id, text):
    try:
        session = panel.get_session(session_id)
    except SessionNotFoundError as e:
        print(f"Error: {e}")
        return
    if session.is_credential_invalid:
        print(
            f"Session #{session_id} is disabled because its API key was rejected. "
            "Save a new key with /keys set."
        )
        return
    reply = await panel.send_message(session_id, text)
    _print_reply(panel, session_id, reply)


async def _broadcast(panel, text):
    replies = await panel.broadcast_message(text)
    for session_id, reply in replies.items():
        _print_reply(panel, session_id, reply)


async def run_repl(panel: ChatPanel, input_func=None):
    """Interactive loop over a panel."""
    if input_func is None:
        input_func = input
    print("Type /help for commands.")
    while True:
        try:
            prompt = input_func("> ").strip()
        except EOFError:
            break

        if prompt.lower() in ["exit", "quit"]:
            break
        if not prompt:
            continue

        if prompt.startswith("/"):
            await _handle_command(panel, prompt)
            continue

        mention = parse_mention(prompt)
        if mention is not None:
            session_id, text = mention
            await _send_to_session(panel, session_id, text)
        elif panel.send_mode == SendMode.BROADCAST:
            await _broadcast(panel, prompt)
        else:
            print("Address a session with @<id> <text>, or switch to /mode broadcast.")

    return panel


async def _run():
    async with create_http_client() as http_client:
        panel = create_panel(http_client=http_client)
        await run_repl(panel)


def main():
    """CLI entry point"""
    init_runtime()
    asyncio.run(_run())


if __name__ == "__main__":
    main()

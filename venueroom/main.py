"""venueroom - demo of the venue room interaction protocol.

Runs one conversation against the simulated peer, either interactively or
along a scripted happy path, and prints the history and screen state.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from venueroom.logging_config import setup_logging
from venueroom.settings import SessionConfig, SettingsError, load_settings
from venueroom.core import (
    DIALOG_REPLY_OPTIONS,
    ConversationState,
    LocationHint,
    PeerId,
    SignalType,
    VenueId,
    SendSignalAction,
    SendDialogReplyAction,
    SendMeetupIntentAction,
    DeclineMeetupAction,
    ShareLocationAction,
    SendQuickHintAction,
    ResetAction,
    check_quick_hint,
)
from venueroom.engine import derive_ui_context, history_to_json
from venueroom.services import SessionController

console = Console()

SCRIPTED_HINT = "Red jacket, by the window"

# Delays used with --fast
FAST_DELAY_MIN = 0.05
FAST_DELAY_MAX = 0.15


def render_state(peer_id: PeerId, state: ConversationState) -> None:
    """Print the conversation history and the derived screen state."""
    history = Table(title=f"Conversation with {peer_id}")
    history.add_column("#", justify="right")
    history.add_column("Time")
    history.add_column("Actor")
    history.add_column("Event")
    history.add_column("Payload")
    for index, event in enumerate(state.history, start=1):
        payload = ", ".join(f"{k}={v}" for k, v in event.payload.items())
        history.add_row(
            str(index),
            event.timestamp.strftime("%H:%M:%S"),
            event.actor.value,
            event.type,
            payload,
        )
    console.print(history)

    ui = derive_ui_context(state)
    screen = Table(show_header=False, title="Screen")
    screen.add_row("Phase", state.phase.value)
    screen.add_row("Exchanges", str(state.exchanges_count))
    screen.add_row("CTA", f"{ui.cta_label}{' (disabled)' if ui.cta_disabled else ''}")
    if ui.secondary_cta_label:
        screen.add_row("Secondary", ui.secondary_cta_label)
    screen.add_row("Status", ui.status_hint)
    console.print(screen)


async def wait_for_peer(controller: SessionController, peer_id: PeerId, timeout: float) -> None:
    """Wait until the simulated peer has no response pending."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while peer_id in controller.pending_peers() and loop.time() < deadline:
        await asyncio.sleep(0.05)


async def run_script(controller: SessionController, peer_id: PeerId) -> int:
    """Walk the happy path: signal, full dialog, meetup, location, hint."""
    timeout = controller.config.response_delay_max + 1.0

    def step(action) -> bool:
        accepted = controller.dispatch(peer_id, action)
        mark = "[green]ok[/green]" if accepted else "[red]rejected[/red]"
        console.print(f"  {action.type}: {mark}")
        return accepted

    console.print("[bold]Sending a wave...[/bold]")
    step(SendSignalAction(signal=SignalType.WAVE))
    await wait_for_peer(controller, peer_id, timeout)

    console.print("[bold]Chatting...[/bold]")
    reply_index = 0
    while controller.get_current_state(peer_id).can_send_dialog_reply():
        step(SendDialogReplyAction(reply=DIALOG_REPLY_OPTIONS[reply_index % len(DIALOG_REPLY_OPTIONS)]))
        reply_index += 1
        await wait_for_peer(controller, peer_id, timeout)

    state = controller.get_current_state(peer_id)
    if not state.can_propose_meetup():
        console.print("[yellow]Meetup not available; stopping.[/yellow]")
        render_state(peer_id, state)
        return 0

    console.print("[bold]Asking to meet...[/bold]")
    step(SendMeetupIntentAction())
    await wait_for_peer(controller, peer_id, timeout)

    if controller.get_current_state(peer_id).can_share_location():
        console.print("[bold]Sharing location...[/bold]")
        step(ShareLocationAction(location=LocationHint.NEAR_BAR))
        step(SendQuickHintAction(text=SCRIPTED_HINT))
    else:
        console.print("[yellow]They said not tonight.[/yellow]")

    render_state(peer_id, controller.get_current_state(peer_id))
    return 0


def _choose(prompt: str, options: list[str]) -> int:
    for index, option in enumerate(options, start=1):
        console.print(f"  [cyan]{index}[/cyan]. {option}")
    choice = Prompt.ask(prompt, choices=[str(i) for i in range(1, len(options) + 1)])
    return int(choice) - 1


def _prompt_action(state: ConversationState):
    """Ask the user for the next gesture. Returns None to quit."""
    ui = derive_ui_context(state)
    labels: list[str] = []
    builders = []

    if ui.can_send_signal:
        for signal in SignalType:
            labels.append(f"{signal.emoji} {signal.label}")
            builders.append(lambda s=signal: SendSignalAction(signal=s))
    if ui.can_send_dialog_reply:
        for reply in DIALOG_REPLY_OPTIONS:
            labels.append(f'Say "{reply}"')
            builders.append(lambda r=reply: SendDialogReplyAction(reply=r))
    if ui.can_propose_meetup:
        labels.append(ui.secondary_cta_label or "Want to say hi in person?")
        builders.append(SendMeetupIntentAction)
    if "decline_meetup" in ui.enabled_actions:
        labels.append("Not tonight")
        builders.append(DeclineMeetupAction)
    if ui.can_share_location:
        for location in LocationHint:
            labels.append(location.label)
            builders.append(lambda loc=location: ShareLocationAction(location=loc))
    if ui.can_send_quick_hint:
        labels.append("Add a quick hint")
        builders.append(lambda: SendQuickHintAction(text=Prompt.ask("Quick hint")))

    labels.append("Wait")
    builders.append(lambda: "wait")
    labels.append("Start over")
    builders.append(ResetAction)
    labels.append("Quit")
    builders.append(lambda: None)

    console.print(f"[bold]{ui.status_hint}[/bold]")
    return builders[_choose("Choose", labels)]()


async def run_interactive(controller: SessionController, peer_id: PeerId) -> int:
    """Let the user drive the conversation from the terminal."""
    timeout = controller.config.response_delay_max + 1.0

    while True:
        await wait_for_peer(controller, peer_id, timeout)
        state = controller.get_current_state(peer_id)
        render_state(peer_id, state)

        # Prompt in a thread so simulated responses keep firing
        action = await asyncio.to_thread(_prompt_action, state)
        if action is None:
            break
        if action == "wait":
            await asyncio.sleep(timeout)
            continue
        if not controller.dispatch(peer_id, action):
            error = check_quick_hint(action.text) if isinstance(action, SendQuickHintAction) else None
            console.print(f"[red]{error or 'That is not possible right now.'}[/red]")

    return 0


async def run_session(config: SessionConfig, peer_id: PeerId, scripted: bool, export: Path | None) -> int:
    """Open a venue room, talk to one peer, then close the room."""
    if not config.protocol_enabled:
        console.print("[yellow]Interaction protocol is disabled.[/yellow]")
        return 1

    controller = SessionController(config)
    controller.change_venue(VenueId("demo-venue"))
    controller.select_peer(peer_id)

    try:
        if scripted:
            result = await run_script(controller, peer_id)
        else:
            result = await run_interactive(controller, peer_id)

        if export is not None:
            export.write_text(history_to_json(controller.get_history(peer_id)), encoding="utf-8")
            console.print(f"History written to {export}")
        return result
    finally:
        controller.close()


def main() -> int:
    """Main entry point for venueroom."""
    # Load environment variables first
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="venueroom - venue room interaction protocol demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  venueroom                       # Chat interactively with a simulated peer
  venueroom --script --fast       # Run the happy path quickly
  venueroom --config session.yaml # Use a config file
        """,
    )
    parser.add_argument(
        "--peer",
        default="avatar-1",
        help="Peer id to talk to (default: avatar-1)",
    )
    parser.add_argument(
        "--script",
        action="store_true",
        help="Run the scripted happy path instead of prompting",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML session configuration",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=Path("data"),
        help="Data directory for logs (default: data/)",
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="Write the conversation history to this JSON file",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the simulated peer",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Shorten simulated response delays",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to console",
    )

    args = parser.parse_args()

    # Setup logging
    console_level = logging.DEBUG if args.debug else logging.WARNING
    log_path = setup_logging(args.data, console_level=console_level)

    try:
        config = load_settings(args.config)
    except SettingsError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 2

    overrides: dict = {}
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.fast:
        overrides["response_delay_min"] = FAST_DELAY_MIN
        overrides["response_delay_max"] = FAST_DELAY_MAX
    if overrides:
        config = SessionConfig.model_validate({**config.model_dump(), **overrides})

    from venueroom import __version__
    console.print(f"venueroom v{__version__}")
    console.print(f"Log file: {log_path}")
    console.print()

    try:
        return asyncio.run(run_session(config, PeerId(args.peer), args.script, args.export))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

"""Terminal client: press Enter to ask, Enter again to send, ``p`` to listen."""

import argparse
import asyncio
import logging

from toddler_ai.config import settings
from toddler_ai.exceptions import EmptyCaptureError, PlaybackError, ToddlerAIError
from toddler_ai.logging_config import setup_logging
from toddler_ai.models import AnswerBundle, RecordingState
from toddler_ai.recording import AskClient, PlaybackSession, RecordingSession

logger = logging.getLogger(__name__)


def _notify(title: str, description: str) -> None:
    print(f"\n{title}\n  {description}")


def _show_answer(bundle: AnswerBundle) -> None:
    _notify("✨ Got your answer!", "Check out what I found for you!")
    print(f"\n🗣️  Your question: {bundle.question}")
    print(f"🧠 Here's what I know: {bundle.explanation}")
    print(f"🎨 Picture: {bundle.image_url}")
    print("🔊 Type 'p' and Enter to listen.")


def _show_error(error: ToddlerAIError) -> None:
    if isinstance(error, EmptyCaptureError):
        _notify("Error", "I didn't hear anything. Try again!")
    else:
        _notify("Error", "Sorry, I couldn't process your question. Try again!")
    logger.info("Question failed: %s", error)


def _on_state(state: RecordingState) -> None:
    if state is RecordingState.PROCESSING:
        _notify("🔄 Processing...", "Thinking about your question!")


def _prompt(state: RecordingState) -> str:
    if state is RecordingState.RECORDING:
        return "🎤 Listening... press Enter to send > "
    return "👆 Press Enter to ask > "


async def _run(server_url: str) -> None:
    client = AskClient(server_url)
    playback = PlaybackSession(server_url)
    recorder = RecordingSession(client, playback=playback)

    latest: dict = {}
    recorder.on_result(lambda bundle: latest.update(bundle=bundle))
    recorder.on_result(_show_answer)
    recorder.on_error(_show_error)
    recorder.on_state_change(_on_state)
    playback.on_error(lambda e: _notify("Audio Error", "Could not play the audio response."))

    _notify("🤖 Toddler AI", "Ask me anything and I'll explain it in a fun way! 🌟")
    try:
        while True:
            shown = recorder.state
            command = (await asyncio.to_thread(input, _prompt(shown))).strip().lower()

            if command in ("q", "quit", "exit"):
                break
            if command == "p":
                bundle = latest.get("bundle")
                if bundle is None or not bundle.audio_url:
                    _notify("Audio Error", "Ask a question first!")
                    continue
                try:
                    await playback.play(bundle.audio_url)
                except PlaybackError:
                    pass  # already reported through on_error
                continue

            if shown is RecordingState.RECORDING and recorder.state is not RecordingState.RECORDING:
                # auto-stop already sent the question while input() was blocked
                continue
            if recorder.state is RecordingState.IDLE:
                try:
                    if await recorder.start():
                        _notify("🎤 Recording started!", "Ask your question now...")
                except ToddlerAIError:
                    pass  # already reported through on_error
            elif recorder.state is RecordingState.RECORDING:
                await recorder.stop()
    finally:
        await playback.aclose()
        await client.aclose()


def main() -> int:
    p = argparse.ArgumentParser(description="Ask Toddler AI a question out loud.")
    p.add_argument("--server", default=settings.server_url, help="server base URL")
    p.add_argument("--log-level", default="WARNING")
    args = p.parse_args()

    setup_logging(args.log_level)
    try:
        asyncio.run(_run(args.server))
    except (KeyboardInterrupt, EOFError):
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from toddler_ai.models import RecordingState
from toddler_ai.recording.cli import _on_state, _prompt


def test_prompt_follows_recording_state():
    assert "Listening" in _prompt(RecordingState.RECORDING)
    assert "to ask" in _prompt(RecordingState.IDLE)
    assert "to ask" in _prompt(RecordingState.PROCESSING)


def test_processing_is_announced_for_any_stop(capsys):
    # auto-stop reaches PROCESSING without a keypress, so the notice comes from the state change
    _on_state(RecordingState.RECORDING)
    assert capsys.readouterr().out == ""

    _on_state(RecordingState.PROCESSING)
    assert "Thinking about your question!" in capsys.readouterr().out

from toddler_ai.recording.api_client import AskClient
from toddler_ai.recording.playback import PlaybackSession
from toddler_ai.recording.session import RecordingSession

__all__ = ["AskClient", "PlaybackSession", "RecordingSession"]

"""Error taxonomy for the video generation pipeline."""


class VideoGenerationError(Exception):
    """Base class for failures that end a job."""


class BrowserLaunchError(VideoGenerationError):
    pass


class NavigationError(VideoGenerationError):
    pass


class EncoderError(VideoGenerationError):
    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class StorageError(VideoGenerationError):
    pass


class InvalidJobError(ValueError):
    """Job request rejected at intake; no job record is created."""


class RateLimitedError(Exception):
    def __init__(self, client_id: str, window_seconds: int) -> None:
        super().__init__(f"Rate limit exceeded for {client_id}; one job per {window_seconds}s")
        self.client_id = client_id
        self.window_seconds = window_seconds

class SlackError(Exception):
    pass


class SlackConfigError(SlackError):
    pass


class SlackRequestError(SlackError):
    pass


class SlackApiError(SlackError):
    def __init__(self, message: str, method: str, error: str) -> None:
        super().__init__(message)
        self.method = method
        self.error = error


class SlackWebhookError(SlackError):
    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SlackConnectionError(SlackError):
    pass


class SlackMessageTooLargeError(SlackError, ValueError):
    pass

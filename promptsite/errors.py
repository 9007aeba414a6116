"""Error types raised by the editor and turned into JSON responses by the app."""


class PromptSiteError(Exception):
    """Base error. ``status`` is the HTTP status the app answers with."""
    status = 500
    title = "Something went wrong"

    def __init__(self, message, title=None):
        super().__init__(message)
        self.message = message
        if title:
            self.title = title

    def to_dict(self):
        return {"error": {"title": self.title, "message": self.message}}


class ValidationError(PromptSiteError):
    status = 400
    title = "Invalid request"


class GatewayError(PromptSiteError):
    status = 502
    title = "Request Failed"


class EmptyResultError(GatewayError):
    title = "Empty Result"


class ImageNotFoundError(PromptSiteError):
    status = 409
    title = "Image Not Found"


class EmptyDocumentError(PromptSiteError):
    status = 400
    title = "No code to export"


class ActionInProgressError(PromptSiteError):
    status = 409
    title = "Please wait"

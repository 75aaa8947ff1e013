class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class GatewayError(RuntimeError):
    """An external service (completion, transcription, synthesis) failed or timed out."""

    def __init__(self, gateway: str, message: str):
        super().__init__(f"{gateway} error: {message}")
        self.gateway = gateway


class StoreError(GatewayError):
    """The shared session store was unreachable or its session lock could not be taken."""

    def __init__(self, message: str):
        super().__init__("Session store", message)

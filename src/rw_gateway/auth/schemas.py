from src.rw_common.response import CamelModel


class SignInRequest(CamelModel):
    push_target: str | None = None


class SignInStarted(CamelModel):
    signing_request_id: str
    link: str
    pushed: bool


class SignInToken(CamelModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    wallet_address: str

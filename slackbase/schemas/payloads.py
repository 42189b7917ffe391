from pydantic import BaseModel, ConfigDict, Field


class SlackbotMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""
    channel: str | None = None


class RtmStartResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    ok: bool
    url: str = Field(min_length=1)

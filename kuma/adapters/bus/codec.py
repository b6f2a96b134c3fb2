"""Wire codec for bus entries.

The JSON field names below are the cross-process contract; every producer and
consumer on the bus must agree on them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kuma.domain.errors import MalformedInput
from kuma.domain.models import Request, Response, ResponseImage, SourceSystem, UserAuthority


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ImageSchema(_WireModel):
    url: str = Field(alias="Url")
    source: str = Field(alias="Source")
    description: str = Field(alias="Description")
    referrer: str = Field(alias="Referrer")


class RequestSchema(_WireModel):
    username: str = Field(alias="Username")
    message: str = Field(alias="Message")
    source_system: SourceSystem = Field(alias="SourceSystem")
    message_id: Optional[int] = Field(default=None, alias="MessageId")
    authority: UserAuthority = Field(default=UserAuthority.USER, alias="UserAuthority")
    channel_id: Optional[int] = Field(default=None, alias="ChannelId")
    channel_is_private: bool = Field(default=False, alias="ChannelIsPrivate")
    channel_is_nsfw: bool = Field(default=False, alias="ChannelIsNsfw")
    timestamp: datetime = Field(alias="Timestamp")

    @classmethod
    def from_domain(cls, request: Request) -> "RequestSchema":
        return cls(
            username=request.username,
            message=request.message,
            source_system=request.source_system,
            message_id=request.message_id,
            authority=request.authority,
            channel_id=request.channel_id,
            channel_is_private=request.channel_is_private,
            channel_is_nsfw=request.channel_is_nsfw,
            timestamp=request.timestamp,
        )

    def to_domain(self) -> Request:
        return Request(
            username=self.username,
            message=self.message,
            source_system=self.source_system,
            message_id=self.message_id,
            authority=self.authority,
            channel_id=self.channel_id,
            channel_is_private=self.channel_is_private,
            channel_is_nsfw=self.channel_is_nsfw,
            timestamp=self.timestamp,
        )


class ResponseSchema(_WireModel):
    source_system: SourceSystem = Field(alias="SourceSystem")
    channel_id: Optional[int] = Field(default=None, alias="ChannelId")
    message: Optional[str] = Field(default=None, alias="Message")
    image: Optional[ImageSchema] = Field(default=None, alias="Image")
    timestamp: datetime = Field(alias="Timestamp")

    @classmethod
    def from_domain(cls, response: Response) -> "ResponseSchema":
        image = None
        if response.image is not None:
            image = ImageSchema(
                url=response.image.url,
                source=response.image.source,
                description=response.image.description,
                referrer=response.image.referrer,
            )
        return cls(
            source_system=response.source_system,
            channel_id=response.channel_id,
            message=response.message,
            image=image,
            timestamp=response.timestamp,
        )

    def to_domain(self) -> Response:
        image = None
        if self.image is not None:
            image = ResponseImage(
                url=self.image.url,
                source=self.image.source,
                description=self.image.description,
                referrer=self.image.referrer,
            )
        return Response(
            source_system=self.source_system,
            channel_id=self.channel_id,
            message=self.message,
            image=image,
            timestamp=self.timestamp,
        )


def encode_request(request: Request) -> str:
    return RequestSchema.from_domain(request).model_dump_json(by_alias=True)


def encode_response(response: Response) -> str:
    return ResponseSchema.from_domain(response).model_dump_json(by_alias=True)


def decode_request(raw) -> Request:
    if not raw:
        raise MalformedInput("empty request payload")
    try:
        return RequestSchema.model_validate_json(raw).to_domain()
    except ValidationError as e:
        raise MalformedInput(f"invalid request payload: {e.error_count()} error(s)") from e


def decode_response(raw) -> Response:
    if not raw:
        raise MalformedInput("empty response payload")
    try:
        return ResponseSchema.model_validate_json(raw).to_domain()
    except ValidationError as e:
        raise MalformedInput(f"invalid response payload: {e.error_count()} error(s)") from e

"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ChannelViewSet: Channel directory (list, create, detail, delete)
- ChannelMessageViewSet: Channel history and posting
- DirectMessageViewSet: Direct messages between users and guests

URL Structure:
    /api/v1/channels/                 GET, POST
    /api/v1/channels/mine/            GET
    /api/v1/channels/{id}/            GET, DELETE
    /api/v1/channel-messages/         GET, POST
    /api/v1/channel-messages/{id}/    GET
    /api/v1/messages/                 GET, POST

Design Decisions:
    - All viewsets use OptionalBearerTokenAuthentication: anonymous and
      guest callers may read and post in open channels
    - Endpoints that need an account use HasVerifiedIdentity
    - A successful HTTP post is broadcast to the channel's room like a
      WebSocket post; a broadcast fault never fails the request
    - All operations use the service layer for business logic
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from authentication.backends import (
    OptionalBearerTokenAuthentication,
    identity_for_request,
)
from authentication.permissions import HasVerifiedIdentity
from chat.apps import get_broadcaster
from chat.broadcaster import message_event
from chat.serializers import (
    ChannelCreateSerializer,
    ChannelHistorySerializer,
    ChannelMessageCreateSerializer,
    ChannelMessageSerializer,
    ChannelSerializer,
    DirectMessageCreateSerializer,
    DirectMessageSerializer,
    RecentQuerySerializer,
)
from chat.services import (
    ChannelDirectoryService,
    DirectMessageService,
    MessageStoreService,
)
from core.exception_handler import failure_response

logger = logging.getLogger(__name__)

GUEST_ID_PARAMETER = OpenApiParameter(
    name="guest_id",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Pseudo identity for callers without an account",
)
LIMIT_PARAMETER = OpenApiParameter(
    name="limit",
    type=OpenApiTypes.INT,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Maximum number of messages (default 100, max 500)",
)


def broadcast_message(message: dict) -> int:
    """
    Hand a stored channel message to the live viewers of its channel.

    Called after the append has committed. Faults are logged and
    swallowed: the write already succeeded.
    """
    event = message_event(message)
    try:
        return async_to_sync(get_broadcaster().broadcast)(event["channel_id"], event)
    except Exception:
        logger.exception(f"Broadcast of message {message['id']} failed")
        return 0


def _query_params(request) -> dict:
    serializer = RecentQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


@extend_schema_view(
    list=extend_schema(
        operation_id="list_channels",
        summary="List channels",
        description="All channels ordered by name (case-sensitive), then id.",
        tags=["Chat - Channels"],
    ),
    create=extend_schema(
        operation_id="create_channel",
        summary="Create channel",
        tags=["Chat - Channels"],
    ),
    retrieve=extend_schema(
        operation_id="get_channel",
        summary="Get channel",
        description="Channel metadata. Readable for restricted channels too.",
        tags=["Chat - Channels"],
    ),
    destroy=extend_schema(
        operation_id="delete_channel",
        summary="Delete channel",
        description="Only the creator may delete a channel; its messages go with it.",
        tags=["Chat - Channels"],
    ),
    mine=extend_schema(
        operation_id="list_my_channels",
        summary="List my channels",
        tags=["Chat - Channels"],
    ),
)
class ChannelViewSet(viewsets.ViewSet):
    """
    ViewSet for the channel directory.

    list:
        Every channel, ordered by name then id.

    create:
        Create a channel owned by the caller. Access defaults to open.

    retrieve:
        Channel metadata.

    destroy:
        Delete a channel. Creator only.

    mine:
        Channels created by the caller.
    """

    authentication_classes = [OptionalBearerTokenAuthentication]

    def get_permissions(self):
        if self.action in ("create", "destroy", "mine"):
            return [HasVerifiedIdentity()]
        return [AllowAny()]

    @extend_schema(responses={200: ChannelSerializer(many=True)})
    def list(self, request):
        result = ChannelDirectoryService.list_all()
        if not result.success:
            return failure_response(result)
        return Response(ChannelSerializer(result.data, many=True).data)

    @extend_schema(
        request=ChannelCreateSerializer,
        responses={
            201: ChannelSerializer,
            400: OpenApiResponse(description="Name, description or access invalid"),
            401: OpenApiResponse(description="No valid token"),
            409: OpenApiResponse(description="Channel id collision"),
        },
    )
    def create(self, request):
        serializer = ChannelCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChannelDirectoryService.create(
            creator=request.user, **serializer.validated_data
        )
        if not result.success:
            return failure_response(result)
        return Response(ChannelSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={
            200: ChannelSerializer,
            404: OpenApiResponse(description="Channel not found"),
        },
    )
    def retrieve(self, request, pk=None):
        result = ChannelDirectoryService.get(pk)
        if not result.success:
            return failure_response(result)
        return Response(ChannelSerializer(result.data).data)

    @extend_schema(
        responses={
            204: None,
            401: OpenApiResponse(description="No valid token"),
            403: OpenApiResponse(description="Caller is not the creator"),
            404: OpenApiResponse(description="Channel not found"),
        },
    )
    def destroy(self, request, pk=None):
        result = ChannelDirectoryService.delete(pk, request.user)
        if not result.success:
            return failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(responses={200: ChannelSerializer(many=True)})
    @action(detail=False, methods=["get"])
    def mine(self, request):
        result = ChannelDirectoryService.list_by_creator(request.user)
        if not result.success:
            return failure_response(result)
        return Response(ChannelSerializer(result.data, many=True).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_recent_channel_messages",
        summary="Recent channel messages",
        description="Messages across every channel, newest first.",
        tags=["Chat - Channel Messages"],
        parameters=[LIMIT_PARAMETER],
    ),
    retrieve=extend_schema(
        operation_id="get_channel_history",
        summary="Channel history",
        description=(
            "Channel metadata and its messages in ascending sequence order. "
            "Restricted channels require a valid token."
        ),
        tags=["Chat - Channel Messages"],
    ),
    create=extend_schema(
        operation_id="post_channel_message",
        summary="Post channel message",
        description=(
            "Append a message and broadcast it to the channel's live viewers. "
            "Callers without a token post as GUEST#<guest_id>, or anonymously "
            "when no guest id is given (open channels only)."
        ),
        tags=["Chat - Channel Messages"],
    ),
)
class ChannelMessageViewSet(viewsets.ViewSet):
    """
    ViewSet for channel messages.

    list:
        Recent messages across all channels.

    retrieve:
        History of one channel (pk is the channel id).

    create:
        Post a message to a channel.
    """

    authentication_classes = [OptionalBearerTokenAuthentication]
    permission_classes = [AllowAny]

    @extend_schema(responses={200: ChannelMessageSerializer(many=True)})
    def list(self, request):
        params = _query_params(request)
        result = MessageStoreService.all_recent(params.get("limit"))
        if not result.success:
            return failure_response(result)
        return Response(ChannelMessageSerializer(result.data, many=True).data)

    @extend_schema(
        responses={
            200: ChannelHistorySerializer,
            401: OpenApiResponse(description="Restricted channel without a valid token"),
            404: OpenApiResponse(description="Channel not found"),
        },
    )
    def retrieve(self, request, pk=None):
        identity = identity_for_request(request)
        result = MessageStoreService.history(pk, identity)
        if not result.success:
            return failure_response(result)

        channel, messages = result.data
        return Response(
            ChannelHistorySerializer({"channel": channel, "messages": messages}).data
        )

    @extend_schema(
        request=ChannelMessageCreateSerializer,
        responses={
            201: ChannelMessageSerializer,
            400: OpenApiResponse(description="Content empty or too long"),
            401: OpenApiResponse(description="Restricted channel without a valid token"),
            404: OpenApiResponse(description="Channel not found"),
        },
    )
    def create(self, request):
        serializer = ChannelMessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        identity = identity_for_request(request, guest_id=data.get("guest_id"))
        result = MessageStoreService.append(data["channel_id"], identity, data["content"])
        if not result.success:
            return failure_response(result)

        message = ChannelMessageSerializer(result.data).data
        broadcast_message(message)
        return Response(message, status=status.HTTP_201_CREATED)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_direct_messages",
        summary="List direct messages",
        description=(
            "With ?peer=<user id or GUEST#id>: the conversation with that peer, "
            "oldest first. Without: the caller's recent direct messages, "
            "newest first. Requires a valid token."
        ),
        tags=["Chat - Direct Messages"],
        parameters=[
            OpenApiParameter(
                name="peer",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
            LIMIT_PARAMETER,
        ],
    ),
    create=extend_schema(
        operation_id="send_direct_message",
        summary="Send direct message",
        description="Send as the authenticated user, or as GUEST#<guest_id>.",
        tags=["Chat - Direct Messages"],
    ),
)
class DirectMessageViewSet(viewsets.ViewSet):
    """
    ViewSet for direct messages.

    list:
        A conversation (?peer=) or the caller's recent direct messages.

    create:
        Send a direct message to a user.
    """

    authentication_classes = [OptionalBearerTokenAuthentication]
    permission_classes = [AllowAny]

    @extend_schema(responses={200: DirectMessageSerializer(many=True)})
    def list(self, request):
        params = _query_params(request)
        identity = identity_for_request(request)

        if "peer" in params:
            result = DirectMessageService.conversation(identity, params["peer"])
        else:
            result = DirectMessageService.recent(identity, params.get("limit"))
        if not result.success:
            return failure_response(result)
        return Response(DirectMessageSerializer(result.data, many=True).data)

    @extend_schema(
        request=DirectMessageCreateSerializer,
        responses={
            201: DirectMessageSerializer,
            400: OpenApiResponse(
                description="No token or guest id, bad content, or sending to yourself"
            ),
            404: OpenApiResponse(description="Receiver not found"),
        },
    )
    def create(self, request):
        serializer = DirectMessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        identity = identity_for_request(request, guest_id=data.get("guest_id"))
        result = DirectMessageService.send(identity, data["receiver_id"], data["content"])
        if not result.success:
            return failure_response(result)
        return Response(
            DirectMessageSerializer(result.data).data, status=status.HTTP_201_CREATED
        )

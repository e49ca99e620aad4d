"""test_chat_relay: 실시간 개인 메시지 중계 테스트."""

import json
from unittest.mock import AsyncMock, patch

import anyio.from_thread
import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from main import app
from schemas.chat_schemas import PrivateMessage
from services.chat_service import ChatRelay, chat_relay


class FakeSocket:
    """send_json 호출만 기록하는 가짜 WebSocket."""

    def __init__(self):
        self.send_json = AsyncMock()


@pytest.fixture
def relay():
    return ChatRelay()


@pytest.fixture
def presence(make_user):
    """set_socket/clear_socket/get_user_by_id를 메모리 기반으로 대체합니다."""
    sockets: dict[int, str | None] = {1: None, 2: None, 3: None}
    names = {1: "marcus", 2: "epictetus", 3: "zeno"}

    async def set_socket(user_id, socket_id):
        sockets[user_id] = socket_id
        return True

    async def clear_socket(socket_id):
        for user_id, current in sockets.items():
            if current == socket_id:
                sockets[user_id] = None
                return user_id
        return None

    async def get_user_by_id(user_id):
        if user_id not in sockets:
            return None
        return make_user(user_id, user_name=names[user_id], socket_id=sockets[user_id])

    with patch("models.user_models.set_socket", new=set_socket), patch(
        "models.user_models.clear_socket", new=clear_socket
    ), patch("models.user_models.get_user_by_id", new=get_user_by_id), patch(
        "models.message_models.save_message", new=AsyncMock(return_value=1)
    ) as save_message:
        yield {"sockets": sockets, "save_message": save_message}


def _frame(receiver, text):
    return json.dumps(
        {"event": "send_private_message", "data": {"receiver": receiver, "text": text}}
    )


class TestChatRelay:
    """ChatRelay 단위 테스트."""

    @pytest.mark.asyncio
    async def test_delivers_only_to_receiver(self, relay, presence):
        sockets = {user_id: FakeSocket() for user_id in (1, 2, 3)}
        for user_id, ws in sockets.items():
            await relay.connect(user_id, ws)

        await relay.handle_frame(1, _frame(2, "Waste no more time arguing."))

        sockets[2].send_json.assert_awaited_once_with(
            {
                "event": "private_message_received",
                "data": {
                    "message": {
                        "sender": 1,
                        "receiver": 2,
                        "text": "Waste no more time arguing.",
                    }
                },
            }
        )
        sockets[1].send_json.assert_not_awaited()
        sockets[3].send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sender_cannot_be_spoofed(self, relay, presence):
        """프레임에 sender를 넣어도 연결한 사용자로 고정됩니다."""
        receiver = FakeSocket()
        await relay.connect(2, receiver)

        await relay.handle_frame(
            1,
            json.dumps(
                {
                    "event": "send_private_message",
                    "data": {"sender": 3, "receiver": 2, "text": "hi"},
                }
            ),
        )

        message = receiver.send_json.await_args.args[0]["data"]["message"]
        assert message["sender"] == 1

    @pytest.mark.asyncio
    async def test_offline_receiver_drops_message(self, relay, presence):
        sent = await relay.send_private_message(
            PrivateMessage(sender=1, receiver=2, text="anyone there?")
        )

        assert sent is False
        presence["save_message"].assert_awaited_once_with(1, 2, "anyone there?")

    @pytest.mark.asyncio
    async def test_unknown_receiver_drops_message(self, relay, presence):
        sent = await relay.send_private_message(
            PrivateMessage(sender=1, receiver=404, text="hello")
        )

        assert sent is False

    @pytest.mark.asyncio
    async def test_save_failure_does_not_block_delivery(self, relay, presence):
        presence["save_message"].side_effect = RuntimeError("db down")
        receiver = FakeSocket()
        await relay.connect(2, receiver)

        sent = await relay.send_private_message(
            PrivateMessage(sender=1, receiver=2, text="still here")
        )

        assert sent is True
        receiver.send_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closed_receiver_socket(self, relay, presence):
        receiver = FakeSocket()
        receiver.send_json.side_effect = RuntimeError("socket closed")
        await relay.connect(2, receiver)

        sent = await relay.send_private_message(
            PrivateMessage(sender=1, receiver=2, text="hi")
        )

        assert sent is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps({"data": {"receiver": 2, "text": "no event"}}),
            json.dumps({"event": "typing", "data": {"receiver": 2}}),
            json.dumps({"event": "send_private_message", "data": {"text": "no receiver"}}),
            json.dumps({"event": "send_private_message", "data": {"receiver": 2, "text": ""}}),
        ],
    )
    async def test_malformed_frames_ignored(self, raw, relay, presence):
        receiver = FakeSocket()
        await relay.connect(2, receiver)

        await relay.handle_frame(1, raw)

        receiver.send_json.assert_not_awaited()
        presence["save_message"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disconnect_clears_presence(self, relay, presence):
        socket_id = await relay.connect(2, FakeSocket())
        assert presence["sockets"][2] == socket_id

        user_id = await relay.disconnect(socket_id)

        assert user_id == 2
        assert presence["sockets"][2] is None
        assert socket_id not in relay.connections

    @pytest.mark.asyncio
    async def test_reconnect_replaces_socket(self, relay, presence):
        """새 연결이 이전 연결 ID를 덮어쓰고, 이전 연결 종료는 새 연결에 영향을 주지 않습니다."""
        old_ws, new_ws = FakeSocket(), FakeSocket()
        old_id = await relay.connect(2, old_ws)
        new_id = await relay.connect(2, new_ws)

        assert await relay.disconnect(old_id) is None
        assert presence["sockets"][2] == new_id

        await relay.send_private_message(PrivateMessage(sender=1, receiver=2, text="hi"))

        new_ws.send_json.assert_awaited_once()
        old_ws.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_presence_write_leaves_registry_empty(self, relay, presence):
        with patch(
            "models.user_models.set_socket",
            new=AsyncMock(side_effect=RuntimeError("db down")),
        ):
            with pytest.raises(RuntimeError):
                await relay.connect(2, FakeSocket())

        assert relay.connections == {}
        assert presence["sockets"][2] is None

    @pytest.mark.asyncio
    async def test_receiver_lookup_failure_drops_message(self, relay, presence):
        """수신자 조회 중 DB 오류가 나도 발신자의 프레임 처리는 계속됩니다."""
        receiver = FakeSocket()
        await relay.connect(2, receiver)

        with patch(
            "models.user_models.get_user_by_id",
            new=AsyncMock(side_effect=RuntimeError("db down")),
        ):
            await relay.handle_frame(1, _frame(2, "lost"))
            sent = await relay.send_private_message(
                PrivateMessage(sender=1, receiver=2, text="lost")
            )

        assert sent is False
        receiver.send_json.assert_not_awaited()

        await relay.handle_frame(1, _frame(2, "found"))

        receiver.send_json.assert_awaited_once()


class TestChatSocket:
    """/ws 엔드포인트 테스트."""

    @pytest.fixture
    def test_client(self):
        # lifespan(DB 연결)을 실행하지 않도록 컨텍스트 매니저 없이 사용하되,
        # 모든 연결이 같은 이벤트 루프에서 돌도록 portal 하나를 공유
        client = TestClient(app)
        with anyio.from_thread.start_blocking_portal() as portal:
            client.portal = portal
            yield client

    @pytest.mark.parametrize("query", ["", "?userId=", "?userId=abc", "?userId=404"])
    def test_rejects_unknown_user(self, query, test_client, presence):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with test_client.websocket_connect(f"/ws{query}") as ws:
                ws.receive_text()

        assert exc_info.value.code == 1008
        assert chat_relay.connections == {}

    def test_private_message_round_trip(self, test_client, presence):
        with test_client.websocket_connect("/ws?userId=1") as marcus:
            with test_client.websocket_connect("/ws?userId=2") as epictetus:
                # 미접속 수신자(3)에게 보낸 메시지는 아무에게도 전달되지 않음
                marcus.send_text(_frame(3, "hello?"))
                marcus.send_text(_frame(2, "The obstacle is the way."))

                received = epictetus.receive_json()

                assert received == {
                    "event": "private_message_received",
                    "data": {
                        "message": {
                            "sender": 1,
                            "receiver": 2,
                            "text": "The obstacle is the way.",
                        }
                    },
                }

                epictetus.send_text("garbage")
                epictetus.send_text(_frame(1, "Indeed."))

                assert marcus.receive_json()["data"]["message"]["text"] == "Indeed."

        assert presence["sockets"] == {1: None, 2: None, 3: None}
        assert chat_relay.connections == {}

    @patch("models.message_models.get_conversation", new_callable=AsyncMock)
    def test_history_endpoint(self, mock_history, test_client, presence, auth_headers):
        from models.message_models import ChatMessage

        mock_history.return_value = [
            ChatMessage(id=1, sender=1, receiver=2, text="hi"),
            ChatMessage(id=2, sender=2, receiver=1, text="hello"),
        ]

        res = test_client.get("/chat/messages/2", headers=auth_headers(1))

        assert res.status_code == 200
        texts = [m["text"] for m in res.json()["data"]["messages"]]
        assert texts == ["hi", "hello"]
        mock_history.assert_awaited_once_with(1, 2)

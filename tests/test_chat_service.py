from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from gigboard.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from gigboard.core.security import get_password_hash
from gigboard.models.chat import Chat, Message, MessageTypeEnum
from gigboard.models.project import Project, ProjectStatusEnum
from gigboard.models.user import User, UserRoleEnum
from gigboard.schemas.chat_schema import ChatCreate, MessageCreate
from gigboard.services.chat_service import ChatService, is_hidden_for, participant_side, set_hidden
from gigboard.services.message_service import MessageService
from gigboard.services.project_service import ProjectService


async def make_user(db, email, role):
    user = User(email=email, password_hash=get_password_hash("secret123"), name=email.split("@")[0], role=role)
    db.add(user)
    await db.flush()
    return user


@pytest_asyncio.fixture
async def marketplace(db_session):
    client = await make_user(db_session, "svc.client@gmail.com", UserRoleEnum.client)
    freelancer = await make_user(db_session, "svc.freelancer@gmail.com", UserRoleEnum.freelancer)
    project = Project(
        client_id=client.user_id,
        title="資料視覺化儀表板",
        description="用 React 做內部儀表板",
        budget_min=1000,
        budget_max=2000,
        category="網站開發",
        location="台北市",
    )
    db_session.add(project)
    await db_session.commit()
    return db_session, client, freelancer, project


async def count_rows(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def test_participant_side_resolved_by_id():
    chat = Chat(client_id="c1", freelancer_id="f1", client_hidden=False, freelancer_hidden=False)
    # 角色之後被切換也不影響聊天室中的身分
    switched = User(user_id="c1", role=UserRoleEnum.freelancer)
    assert participant_side(chat, switched) == UserRoleEnum.client
    assert participant_side(chat, User(user_id="f1", role=UserRoleEnum.client)) == UserRoleEnum.freelancer
    with pytest.raises(AuthorizationError):
        participant_side(chat, User(user_id="x", role=UserRoleEnum.client))


def test_set_hidden_touches_one_side():
    chat = Chat(client_id="c1", freelancer_id="f1", client_hidden=False, freelancer_hidden=False)
    set_hidden(chat, UserRoleEnum.freelancer, True)
    assert is_hidden_for(chat, UserRoleEnum.freelancer) is True
    assert is_hidden_for(chat, UserRoleEnum.client) is False


@pytest.mark.asyncio
async def test_open_chat_twice_same_identity(marketplace):
    db, client, freelancer, project = marketplace
    service = ChatService(db)
    data = ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id)

    chat, created = await service.open_chat(data, client)
    again, created_again = await service.open_chat(data, client)
    assert created is True
    assert created_again is False
    assert again.chat_id == chat.chat_id
    assert await count_rows(db, Chat) == 1


@pytest.mark.asyncio
async def test_open_chat_recovers_from_concurrent_insert(marketplace, session_factory):
    db, client, freelancer, project = marketplace

    # 另一個 session 先建立了同一組聊天室
    async with session_factory() as other:
        other.add(Chat(project_id=project.project_id, client_id=client.user_id, freelancer_id=freelancer.user_id))
        await other.commit()

    service = ChatService(db)
    real_find = service.chat_repo.find_chat
    calls = []

    async def stale_then_real(*key):
        # 第一次檢查時還沒看到對方的資料
        calls.append(key)
        if len(calls) == 1:
            return None
        return await real_find(*key)

    service.chat_repo.find_chat = AsyncMock(side_effect=stale_then_real)

    chat, created = await service.open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    assert created is False
    assert chat is not None
    assert len(calls) == 2
    assert await count_rows(db, Chat) == 1


@pytest.mark.asyncio
async def test_open_chat_rejects_non_client(marketplace):
    db, client, freelancer, project = marketplace
    service = ChatService(db)
    with pytest.raises(AuthorizationError):
        await service.open_chat(
            ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), freelancer
        )
    with pytest.raises(NotFoundError):
        await service.open_chat(ChatCreate(project_id="missing", freelancer_id=freelancer.user_id), client)


@pytest.mark.asyncio
async def test_hard_delete_only_when_both_hidden(marketplace):
    db, client, freelancer, project = marketplace
    chat_service = ChatService(db)
    message_service = MessageService(db)
    chat, _ = await chat_service.open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    await message_service.send_message(MessageCreate(chat_id=chat.chat_id, content="hi"), freelancer)
    await message_service.send_message(MessageCreate(chat_id=chat.chat_id, content="hello"), client)

    assert await chat_service.hide_chat(chat.chat_id, client) is False
    assert await count_rows(db, Chat) == 1
    assert await count_rows(db, Message) == 2

    assert await chat_service.hide_chat(chat.chat_id, freelancer) is True
    assert await count_rows(db, Chat) == 0
    assert await count_rows(db, Message) == 0


@pytest.mark.asyncio
async def test_send_clears_only_sender_hidden_flag(marketplace):
    db, client, freelancer, project = marketplace
    chat_service = ChatService(db)
    message_service = MessageService(db)
    chat, _ = await chat_service.open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    chat.client_hidden = True
    chat.freelancer_hidden = False
    await db.commit()

    await message_service.send_message(MessageCreate(chat_id=chat.chat_id, content="在嗎"), freelancer)
    stored = await chat_service.chat_repo.get_chat_by_id_with_relations(chat.chat_id)
    assert stored.client_hidden is True
    assert stored.freelancer_hidden is False

    await message_service.send_message(MessageCreate(chat_id=chat.chat_id, content="在"), client)
    stored = await chat_service.chat_repo.get_chat_by_id_with_relations(chat.chat_id)
    assert stored.client_hidden is False


@pytest.mark.asyncio
async def test_send_updates_last_activity(marketplace):
    db, client, freelancer, project = marketplace
    chat, _ = await ChatService(db).open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    message = await MessageService(db).send_message(
        MessageCreate(chat_id=chat.chat_id, content="報價單", type=MessageTypeEnum.file, file_url="/files/q.pdf"),
        freelancer,
    )
    stored = await ChatService(db).chat_repo.get_chat_by_id_with_relations(chat.chat_id)
    assert stored.last_activity_at == message.created_at


@pytest.mark.asyncio
async def test_system_type_rejected(marketplace):
    db, client, freelancer, project = marketplace
    chat, _ = await ChatService(db).open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    with pytest.raises(ValidationError):
        await MessageService(db).send_message(
            MessageCreate(chat_id=chat.chat_id, content="x", type=MessageTypeEnum.system), client
        )


@pytest.mark.asyncio
async def test_unread_count_matches_definition(marketplace):
    db, client, freelancer, project = marketplace
    chat, _ = await ChatService(db).open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    service = MessageService(db)
    for text in ("1", "2"):
        await service.send_message(MessageCreate(chat_id=chat.chat_id, content=text), freelancer)
    await service.send_message(MessageCreate(chat_id=chat.chat_id, content="3"), client)

    assert await service.unread_count(client) == 2
    assert await service.unread_count(freelancer) == 1

    assert await service.mark_as_read(chat.chat_id, client) == 2
    assert await service.unread_count(client) == 0
    assert await service.unread_count(freelancer) == 1


@pytest.mark.asyncio
async def test_archive_project_posts_system_message(marketplace):
    db, client, freelancer, project = marketplace
    chat, _ = await ChatService(db).open_chat(
        ChatCreate(project_id=project.project_id, freelancer_id=freelancer.user_id), client
    )
    archived = await ProjectService(db).archive_project(project.project_id, client)
    assert archived.status == ProjectStatusEnum.deleted

    messages = await MessageService(db).list_messages(chat.chat_id, freelancer)
    assert len(messages) == 1
    assert messages[0].type == MessageTypeEnum.system
    assert messages[0].sender_id == client.user_id

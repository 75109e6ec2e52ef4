import os
import sys

# 在匯入 gigboard 之前先設定測試用環境變數 (Settings 於匯入時建立)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

# Ensure backend package (gigboard) is on sys.path for imports during tests
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gigboard.core.database import Base, get_db
from gigboard.main import app


@pytest_asyncio.fixture
async def engine():
    """每個測試一個全新的 in-memory SQLite"""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


# --- 共用小工具 ---

async def register(client, email, role="freelancer", name=None, password="secret123"):
    """註冊並回傳 (user dict, Authorization headers)"""
    response = await client.post("/api/auth/register", json={
        "email": email,
        "password": password,
        "name": name or email.split("@")[0],
        "role": role,
    })
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['access_token']}"}


async def create_project(client, headers, **overrides):
    payload = {
        "title": "官網改版",
        "description": "需要重新設計公司形象官網",
        "budget_min": 1000,
        "budget_max": 2000,
        "category": "網站開發",
        "location": "台北市",
    }
    payload.update(overrides)
    response = await client.post("/api/projects", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def open_chat(client, headers, project_id, freelancer_id):
    response = await client.post(
        "/api/chats",
        json={"project_id": project_id, "freelancer_id": freelancer_id},
        headers=headers,
    )
    assert response.status_code in (200, 201), response.text
    return response.json()


async def send(client, headers, chat_id, content, **extra):
    payload = {"chat_id": chat_id, "content": content}
    payload.update(extra)
    return await client.post("/api/messages", json=payload, headers=headers)


@pytest_asyncio.fixture
async def client_user(client):
    return await register(client, "alice.client@gmail.com", role="client", name="Alice")


@pytest_asyncio.fixture
async def freelancer_user(client):
    return await register(client, "bob.freelancer@gmail.com", role="freelancer", name="Bob")


@pytest_asyncio.fixture
async def chat_setup(client, client_user, freelancer_user):
    """發案者 Alice 的案件 + 與接案者 Bob 的聊天室"""
    alice, alice_headers = client_user
    bob, bob_headers = freelancer_user
    project = await create_project(client, alice_headers)
    chat = await open_chat(client, alice_headers, project["project_id"], bob["user_id"])
    return {
        "alice": alice, "alice_headers": alice_headers,
        "bob": bob, "bob_headers": bob_headers,
        "project": project, "chat": chat,
    }

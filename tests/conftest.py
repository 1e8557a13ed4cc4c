import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DB_TYPE"] = "sqlite"
os.environ["SQLITE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/test.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DELIVERY_FEE"] = "5.00"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import select  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from main import app  # noqa: E402
from storefront.core.db import AsyncSessionLocal, init_models, drop_models  # noqa: E402
from storefront.core.security import hash_password  # noqa: E402
from storefront.models import User, DiscountCode  # noqa: E402

ADMIN_EMAIL = "admin@shopmail.io"
SHOPPER_EMAIL = "alice@shopmail.io"
OTHER_EMAIL = "bob@shopmail.io"
PASSWORD = "s3cret-pass"

SHIPPING = {
    "full_name": "Alice Doe",
    "email": "alice@shopmail.io",
    "phone": "+100000000",
    "address": "1 Main St",
    "city": "Springfield",
    "postal_code": "12345",
    "country": "US",
}


@pytest.fixture
async def database():
    await drop_models()
    await init_models()
    yield


@pytest.fixture
async def session(database):
    async with AsyncSessionLocal() as s:
        yield s


@pytest.fixture
async def client(database):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def create_user(username: str, role: str = "user") -> User:
    async with AsyncSessionLocal() as s:
        user = User(username=username, password_hash=hash_password(PASSWORD), role=role, is_active=True)
        s.add(user)
        await s.commit()
        await s.refresh(user)
        return user


async def create_code(code: str = "SAVE20", percentage: int = 20, **fields) -> DiscountCode:
    async with AsyncSessionLocal() as s:
        record = DiscountCode(code=code, percentage=percentage, **fields)
        s.add(record)
        await s.commit()
        await s.refresh(record)
        return record


async def get_code(code: str) -> DiscountCode:
    async with AsyncSessionLocal() as s:
        return (await s.execute(select(DiscountCode).where(DiscountCode.code == code))).scalar_one()


async def login(client, username: str) -> dict:
    resp = await client.post("/auth/login", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
async def admin_headers(client):
    await create_user(ADMIN_EMAIL, role="admin")
    tokens = await login(client, ADMIN_EMAIL)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
async def shopper_headers(client):
    await create_user(SHOPPER_EMAIL)
    tokens = await login(client, SHOPPER_EMAIL)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def past():
    return datetime.now(timezone.utc) - timedelta(days=1)


@pytest.fixture
def future():
    return datetime.now(timezone.utc) + timedelta(days=30)

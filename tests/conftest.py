from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config import Settings, get_settings
from database import init_db
from load_data import insert_logs
from main import app

OWN_IP = "127.0.0.2"
BLOG_HOST = "comments.example.com"
BLOG_ASSET = "/js/embed.min.js"

# Range used by the HTTP tests: one hour, starting on a whole second
RANGE_START = datetime(2017, 11, 14, 13, 0, 0, tzinfo=timezone.utc)
RANGE_END = datetime(2017, 11, 14, 14, 0, 0, tzinfo=timezone.utc)
START = int(RANGE_START.timestamp())


def log_row(
    epoch,
    host="example.com",
    remote_addr="10.0.0.1",
    method="GET",
    path="/",
    status=200,
    body_bytes_sent=100,
    referer="-",
):
    return (epoch, remote_addr, "-", method, path, "HTTP/1.1", status, body_bytes_sent, referer, "curl/8.0", host)


# Access log covering the first minutes of the test range
SAMPLE_LOGS = [
    log_row(START + 5, host="example.com", body_bytes_sent=1000),
    log_row(START + 10, host="example.com", body_bytes_sent=500),
    log_row(START + 40, host="example.com", body_bytes_sent=250),
    log_row(START + 35, host="blog.example.com", body_bytes_sent=2000),
    # Requests from our own address only count towards sites
    log_row(START + 12, host="example.com", remote_addr=OWN_IP, body_bytes_sent=9999),
    log_row(START + 61, host=BLOG_HOST, path=BLOG_ASSET, body_bytes_sent=10,
            referer="https://blog.example.com/a"),
    log_row(START + 62, host=BLOG_HOST, path=BLOG_ASSET, body_bytes_sent=10,
            referer="https://blog.example.com/b"),
    log_row(START + 63, host=BLOG_HOST, path=BLOG_ASSET, body_bytes_sent=10,
            referer="https://blog.example.com/b"),
    log_row(START + 64, host=BLOG_HOST, path=BLOG_ASSET, remote_addr=OWN_IP,
            body_bytes_sent=10, referer="https://blog.example.com/a"),
    log_row(START + 65, host=BLOG_HOST, path=BLOG_ASSET, method="POST",
            body_bytes_sent=10, referer="https://blog.example.com/a"),
    # Outside of the range
    log_row(START - 3600, host="example.com", body_bytes_sent=77),
]


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "access.db")
    insert_logs(path, SAMPLE_LOGS)
    return path


@pytest.fixture
def empty_db_path(tmp_path):
    path = str(tmp_path / "empty.db")
    init_db(path)
    return path


@pytest.fixture
def settings(db_path):
    return Settings(db=db_path, ip=OWN_IP, blog_host=BLOG_HOST, blog_asset=BLOG_ASSET)


# Client talking to the app in-process with the test settings
@pytest_asyncio.fixture(scope="function")
async def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from coding_jojo_app.core.exceptions_handler.global_exception_handler import global_exception_handler


def make_app() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    return app


async def test_unhandled_errors_use_the_error_envelope():
    transport = ASGITransport(app=make_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == 500
    assert body["error"] == "internal_error"
    assert "error_details" not in body

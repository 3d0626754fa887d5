from httpx import ASGITransport, AsyncClient

from app.main import create_app


async def test_root_redirects_to_list(client):
    res = await client.get("/")
    assert res.status_code == 303
    assert res.headers["location"] == "/todos"


async def test_lifespan_creates_local_tables(settings):
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            res = await client.post(
                "/signup", data={"email": "life@example.com", "password": "pw-123456", "confirm_password": "pw-123456"}
            )
            assert res.status_code == 200


def test_lambda_handler_wraps_app():
    from app.handlers.web_handler import handler
    from app.main import app

    assert handler.app is app

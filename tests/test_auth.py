from app.services.auth_service import AuthService


async def test_sign_up_then_sign_in_yields_matching_session(backend):
    auth = AuthService(backend, locale="en")
    up = await auth.sign_up("alice@example.com", "pw-123456", "pw-123456")
    assert up.ok
    assert "check your email" in up.message.text

    res = await auth.sign_in("alice@example.com", "pw-123456")
    assert res.ok
    assert res.session.user.email == "alice@example.com"
    user = await backend.get_user(res.session.access_token)
    assert user.email == "alice@example.com"


async def test_password_mismatch_never_reaches_backend(backend):
    auth = AuthService(backend, locale="en")
    res = await auth.sign_up("bob@example.com", "pw-123456", "pw-654321")
    assert not res.ok
    assert res.message.text == "Passwords do not match."
    # no account was created
    assert not (await auth.sign_in("bob@example.com", "pw-123456")).ok


async def test_backend_error_text_is_shown(backend):
    auth = AuthService(backend, locale="en")
    res = await auth.sign_in("nobody@example.com", "whatever")
    assert not res.ok
    assert res.message.kind == "error"
    assert res.message.text == "Invalid login credentials"


async def test_duplicate_sign_up_is_rejected(backend):
    auth = AuthService(backend, locale="en")
    assert (await auth.sign_up("dup@example.com", "pw-123456", "pw-123456")).ok
    res = await auth.sign_up("dup@example.com", "pw-123456", "pw-123456")
    assert not res.ok
    assert res.message.text == "User already registered"


async def test_login_form_sets_cookie_and_redirects(client, settings):
    await client.post("/signup", data={"email": "carol@example.com", "password": "pw-123456", "confirm_password": "pw-123456"})
    res = await client.post("/login", data={"email": "carol@example.com", "password": "pw-123456"})
    assert res.status_code == 303
    assert res.headers["location"] == "/todos?msg=login_success"
    assert client.cookies.get(settings.session_cookie_name)

    page = await client.get(res.headers["location"])
    assert page.status_code == 200
    assert "Logged in." in page.text


async def test_login_form_failure_renders_error(client):
    res = await client.post("/login", data={"email": "dave@example.com", "password": "nope"})
    assert res.status_code == 400
    assert "Invalid login credentials" in res.text
    assert 'value="dave@example.com"' in res.text


async def test_signup_form_mismatch(client):
    res = await client.post("/signup", data={"email": "erin@example.com", "password": "a-123456", "confirm_password": "b-123456"})
    assert res.status_code == 400
    assert "Passwords do not match." in res.text
    assert 'name="confirm_password"' in res.text


async def test_signup_form_success_asks_for_confirmation(client):
    res = await client.post("/signup", data={"email": "frank@example.com", "password": "pw-123456", "confirm_password": "pw-123456"})
    assert res.status_code == 200
    assert "Please check your email" in res.text


async def test_logout_revokes_session(client, login, settings, backend):
    await login(client, "gina@example.com")
    token = client.cookies.get(settings.session_cookie_name)

    res = await client.post("/logout")
    assert res.status_code == 303
    assert res.headers["location"] == "/login?msg=logout_success"
    assert await backend.get_user(token) is None

    client.cookies.clear()
    assert (await client.get("/todos")).headers["location"] == "/login"

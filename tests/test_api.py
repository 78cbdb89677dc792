"""API endpoint tests for health and authentication."""

from datetime import UTC, datetime, timedelta

from resource_hub.models.user import User
from resource_hub.models.verification_token import VerificationToken


def _register(client, username="newuser", email="newuser@example.com", password="password123"):
    return client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_user(client, db, mock_verification_email):
    """Test user registration queues a verification email."""
    response = _register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert "access_token" not in data

    user = db.query(User).filter_by(id=data["user_id"]).one()
    assert not user.email_verified
    token = db.query(VerificationToken).filter_by(user_id=user.id).one()
    mock_verification_email.assert_called_once_with("newuser@example.com", token.token)


def test_register_survives_queue_failure(client, mock_verification_email):
    """Test registration still succeeds when the broker is down."""
    mock_verification_email.side_effect = ConnectionError("broker down")
    response = _register(client)
    assert response.status_code == 201


def test_register_duplicate_email(client, user):
    """Test registration with duplicate email fails."""
    response = _register(client, username="someoneelse", email=user.email)
    assert response.status_code == 409
    assert "already registered" in response.json()["detail"]


def test_register_duplicate_username(client, user):
    """Test registration with a taken username fails, case-insensitively."""
    response = _register(client, username="ALICE", email="another@example.com")
    assert response.status_code == 409
    assert response.json()["detail"] == "Username already taken"


def test_register_invalid_username(client):
    """Test usernames are limited to letters, digits, dash and underscore."""
    response = _register(client, username="bad name!")
    assert response.status_code == 422


def test_login(client, user):
    """Test user login."""
    response = client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["user"]["username"] == "alice"


def test_login_wrong_password(client, user):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": "wrongpass"}
    )
    assert response.status_code == 401


def test_login_requires_verified_email(client, make_user):
    """Test unverified users cannot log in."""
    pending = make_user("pending", email_verified=False)
    response = client.post(
        "/api/v1/auth/login", json={"email": pending.email, "password": "testpass123"}
    )
    assert response.status_code == 403
    assert "verify your email" in response.json()["detail"]


def test_login_banned_user(client, make_user):
    """Test banned users cannot log in."""
    banned = make_user("banned", is_banned=True)
    response = client.post(
        "/api/v1/auth/login", json={"email": banned.email, "password": "testpass123"}
    )
    assert response.status_code == 403
    assert "banned" in response.json()["detail"]


def test_verify_email_flow(client, db):
    """Test register, verify, then log in."""
    user_id = _register(client).json()["user_id"]
    token = db.query(VerificationToken).filter_by(user_id=user_id).one().token

    response = client.post("/api/v1/auth/verify-email", json={"token": token})
    assert response.status_code == 200
    assert response.json()["user"]["email_verified"] is True

    # Tokens are single use
    response = client.post("/api/v1/auth/verify-email", json={"token": token})
    assert response.status_code == 404

    response = client.post(
        "/api/v1/auth/login", json={"email": "newuser@example.com", "password": "password123"}
    )
    assert response.status_code == 200


def test_verify_email_expired_token(client, db):
    """Test expired tokens are rejected with 410."""
    user_id = _register(client).json()["user_id"]
    token = db.query(VerificationToken).filter_by(user_id=user_id).one()
    token.expires_at = datetime.now(UTC) - timedelta(minutes=1)
    db.commit()

    response = client.post("/api/v1/auth/verify-email", json={"token": token.token})
    assert response.status_code == 410


def test_resend_verification_replaces_token(client, db, mock_verification_email):
    """Test resending issues a new token and invalidates the old one."""
    user_id = _register(client).json()["user_id"]
    old_token = db.query(VerificationToken).filter_by(user_id=user_id).one().token

    response = client.post(
        "/api/v1/auth/resend-verification", json={"email": "newuser@example.com"}
    )
    assert response.status_code == 200
    assert mock_verification_email.call_count == 2

    tokens = db.query(VerificationToken).filter_by(user_id=user_id).all()
    assert len(tokens) == 1
    assert tokens[0].token != old_token


def test_resend_verification_unknown_email(client, mock_verification_email):
    """Test resending does not reveal whether an account exists."""
    response = client.post(
        "/api/v1/auth/resend-verification", json={"email": "nobody@example.com"}
    )
    assert response.status_code == 200
    mock_verification_email.assert_not_called()


def test_resend_verification_already_verified(client, user):
    response = client.post("/api/v1/auth/resend-verification", json={"email": user.email})
    assert response.status_code == 400


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == auth_headers.email


def test_get_current_user_banned(client, user, auth_headers, db):
    """Test tokens stop working once the user is banned."""
    user.is_banned = True
    db.commit()
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 403


def test_unauthorized_access(client):
    """Test accessing protected endpoint without auth."""
    response = client.get("/api/v1/auth/me")
    assert response.status_code in (401, 403)


def test_invalid_token(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

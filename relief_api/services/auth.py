# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for session tokens, password hashing and signup.

Session tokens are RS256-signed JWTs carrying the principal's id, role and
approval status. There is no server-side session store; every request
re-derives the principal from the token.
"""

import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace
import logging

from ..domain.validation import sanitize_string, validate_signup_payload
from ..middleware.error_handler import AlreadyExistsException, ValidationException
from ..models.entities import Address, Principal, User
from ..models.enums import UserRole, UserStatus, VolunteerType
from .repositories import DuplicateRecordError, UserRepository

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

SESSION_TOKEN_TYPE = "session"


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


class UserNotFoundError(AuthenticationError):
    def __init__(self):
        super().__init__("No user found with this email")


class InvalidCredentialError(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid password")


class AccountNotApprovedError(AuthenticationError):
    """Credentials are valid but the account is not approved."""

    def __init__(self, status: str):
        super().__init__(f"Account status: {status}. Please wait for admin approval.")
        self.status = status


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


def generate_key_pair() -> Tuple[str, str]:
    """Generate an RSA key pair as PEM strings (private, public)."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048
    )

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode('utf-8')

    return private_pem, public_pem


class AuthService:
    """
    Authentication gate with RS256 session tokens and bcrypt password hashing.

    Provides signup, credential checks and session token issue/validation.
    """

    def __init__(
        self,
        users: UserRepository,
        private_key: Optional[str] = None,
        public_key: Optional[str] = None,
        session_max_age_days: int = 30,
        bcrypt_rounds: int = 12,
    ):
        """
        Initialize the authentication service.

        Args:
            users: User repository
            private_key: RS256 private key for token signing (PEM format)
            public_key: RS256 public key for token verification (PEM format)
            session_max_age_days: Session token lifetime
            bcrypt_rounds: bcrypt cost factor
        """
        self.users = users
        if not private_key or not public_key:
            logger.warning("JWT key pair not configured, generating development key pair")
            private_key, public_key = generate_key_pair()

        self.private_key = private_key
        self.public_key = public_key
        self.algorithm = "RS256"
        self.session_max_age = timedelta(days=session_max_age_days)
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt with salt.

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password string
        """
        with tracer.start_as_current_span("auth.hash_password") as span:
            span.set_attribute("auth.operation", "hash_password")

            salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
            hashed = bcrypt.hashpw(password.encode('utf-8'), salt)

            return hashed.decode('utf-8')

    def verify_password(self, password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        with tracer.start_as_current_span("auth.verify_password") as span:
            span.set_attribute("auth.operation", "verify_password")

            try:
                result = bcrypt.checkpw(
                    password.encode('utf-8'),
                    hashed_password.encode('utf-8')
                )
            except ValueError as e:
                # Malformed stored hash
                span.set_attribute("auth.verification_result", "error")
                logger.error(f"Password verification error: {str(e)}")
                return False

            span.set_attribute("auth.verification_result", "success" if result else "failed")
            return result

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials and approval status.

        Raises:
            UserNotFoundError: No account for the email
            InvalidCredentialError: Password does not match
            AccountNotApprovedError: Account is pending or rejected
        """
        with tracer.start_as_current_span("auth.authenticate") as span:
            user = self.users.find_by_email(email)
            if user is None:
                span.set_attribute("auth.result", "not_found")
                raise UserNotFoundError()

            span.set_attribute("user.id", user.id)

            if not self.verify_password(password, user.password_hash):
                span.set_attribute("auth.result", "invalid_credential")
                raise InvalidCredentialError()

            if user.status != UserStatus.APPROVED.value:
                span.set_attribute("auth.result", "not_approved")
                raise AccountNotApprovedError(user.status)

            span.set_attribute("auth.result", "success")
            logger.info("User authenticated", extra={"user_id": user.id, "role": user.role})
            return user

    def issue_session_token(self, user: User) -> Dict[str, Any]:
        """
        Generate a session token for a user.

        Returns:
            Dictionary with the token and its expiry
        """
        with tracer.start_as_current_span("auth.issue_session_token") as span:
            span.set_attributes({"auth.operation": "issue_session_token", "user.id": user.id})

            now = datetime.now(timezone.utc)
            expires_at = now + self.session_max_age

            payload = {
                "sub": user.id,
                "email": user.email,
                "name": user.name,
                "role": user.role,
                "status": user.status,
                "iat": now,
                "exp": expires_at,
                "type": SESSION_TOKEN_TYPE
            }

            token = jwt.encode(payload, self.private_key, algorithm=self.algorithm)

            logger.info(
                "Session token issued",
                extra={"user_id": user.id, "expires_at": expires_at.isoformat()}
            )

            return {
                "token": token,
                "token_type": "Bearer",
                "expires_in": int(self.session_max_age.total_seconds()),
                "expires_at": expires_at.isoformat()
            }

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate and decode a session token.

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attribute("auth.operation", "validate_token")

            try:
                payload = jwt.decode(
                    token,
                    self.public_key,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub", "exp"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type") != SESSION_TOKEN_TYPE:
                span.set_attribute("auth.validation_result", "wrong_type")
                raise TokenValidationError("Invalid token type")

            span.set_attributes({"auth.validation_result": "success", "user.id": payload.get("sub")})
            return payload

    def principal_from_token(self, token: str) -> Principal:
        """Decode a session token into the caller's principal."""
        payload = self.validate_token(token)
        try:
            return Principal(
                user_id=payload["sub"],
                role=payload.get("role"),
                status=payload.get("status"),
                email=payload.get("email"),
                name=payload.get("name"),
            )
        except ValueError as e:
            raise TokenValidationError(f"Invalid token claims: {str(e)}")

    def register(self, data: Dict[str, Any]) -> User:
        """
        Create a pending account from a signup payload.

        Raises:
            ValidationException: Payload violates one or more rules
            AlreadyExistsException: Email already registered
        """
        with tracer.start_as_current_span("auth.register") as span:
            result = validate_signup_payload(data)
            if not result.is_valid:
                span.set_attribute("auth.result", "invalid")
                raise ValidationException.from_errors(result.errors)

            email = data['email'].strip().lower()
            if self.users.find_by_email(email) is not None:
                span.set_attribute("auth.result", "duplicate")
                raise AlreadyExistsException("Email already registered")

            role = data['role']
            address = data['address']
            user = User(
                email=email,
                password_hash=self.hash_password(data['password']),
                name=sanitize_string(data['name'], 100),
                role=role,
                status=UserStatus.PENDING.value,
                address=Address(
                    street=sanitize_string(address.get('street'), 200) or None,
                    city=sanitize_string(address.get('city'), 100),
                    district=sanitize_string(address.get('district'), 100),
                    division=sanitize_string(address.get('division'), 100),
                    postal_code=sanitize_string(address.get('postalCode'), 20) or None,
                    landmark=sanitize_string(address.get('landmark'), 200) or None,
                ),
                nid=sanitize_string(data.get('nid'), 17) or None,
                phone=sanitize_string(data.get('phone'), 11) or None,
                profession=sanitize_string(data.get('profession'), 100) or None,
                age=data.get('age'),
            )

            if role != UserRole.USER.value:
                default_type = (
                    VolunteerType.EMERGENCY.value
                    if role == UserRole.EMERGENCY_VOLUNTEER.value
                    else VolunteerType.PERMANENT.value
                )
                user.volunteer_type = data.get('volunteerType') or default_type
                user.sector = data['sector']
                user.experience = sanitize_string(data.get('experience'), 1000) or None

            try:
                self.users.insert(user)
            except DuplicateRecordError:
                raise AlreadyExistsException("Email already registered")

            span.set_attributes({"auth.result": "registered", "user.id": user.id})
            logger.info("User registered", extra={"user_id": user.id, "role": role})
            return user

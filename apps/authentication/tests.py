import json
import uuid

from django.test import TestCase, SimpleTestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from apps.authentication.models import Role
from apps.authentication.policies import (
    CATALOG_READ,
    CATALOG_WRITE,
    USERS_READ,
    is_allowed,
)
from apps.authentication.services import TokenService
from apps.common.exceptions import AuthenticationError

User = get_user_model()


class RolePolicyTestCase(SimpleTestCase):
    """Tests for the role policy table"""

    def test_admin_may_do_everything(self):
        for operation in (CATALOG_READ, CATALOG_WRITE, USERS_READ):
            self.assertTrue(is_allowed(Role.ADMIN, operation))

    def test_customer_may_only_read_catalog(self):
        self.assertTrue(is_allowed(Role.CUSTOMER, CATALOG_READ))
        self.assertFalse(is_allowed(Role.CUSTOMER, CATALOG_WRITE))
        self.assertFalse(is_allowed(Role.CUSTOMER, USERS_READ))

    def test_stored_role_values_are_accepted(self):
        """Test roles read back from the database as plain strings"""
        self.assertTrue(is_allowed("admin", USERS_READ))
        self.assertFalse(is_allowed("customer", USERS_READ))

    def test_unknown_role_or_operation_denied(self):
        self.assertFalse(is_allowed("superhero", CATALOG_READ))
        self.assertFalse(is_allowed(Role.ADMIN, "catalog.destroy_everything"))


class UserRegistrationTestCase(TestCase):
    """Tests for user registration functionality"""

    def setUp(self):
        self.client = APIClient()
        self.registration_url = "/api/v1/auth/register/"
        self.valid_user_data = {
            "email": "testuser@example.com",
            "password": "SecurePass123!",
            "password_confirm": "SecurePass123!",
            "name": "Test User",
            "birth_date": "1990-05-17",
        }

    def test_user_registration_success(self):
        """Test successful registration creates a customer"""
        response = self.client.post(self.registration_url, self.valid_user_data, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["email"], self.valid_user_data["email"])

        user = User.objects.get(email=self.valid_user_data["email"])
        self.assertEqual(user.role, Role.CUSTOMER)
        self.assertTrue(user.check_password(self.valid_user_data["password"]))
        self.assertEqual(str(user.birth_date), "1990-05-17")

    def test_registration_cannot_choose_role(self):
        """Test a role sent by the client is ignored"""
        data = dict(self.valid_user_data, role="admin")

        self.client.post(self.registration_url, data, format="json")

        user = User.objects.get(email=self.valid_user_data["email"])
        self.assertEqual(user.role, Role.CUSTOMER)

    def test_registration_password_mismatch(self):
        """Test registration fails when passwords do not match"""
        invalid_data = dict(self.valid_user_data, password_confirm="DifferentPassword123!")

        response = self.client.post(self.registration_url, invalid_data, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")
        self.assertFalse(User.objects.filter(email=invalid_data["email"]).exists())

    def test_registration_duplicate_email(self):
        """Test registration fails with duplicate email address"""
        User.objects.create_user(
            email=self.valid_user_data["email"],
            password=self.valid_user_data["password"],
        )

        response = self.client.post(self.registration_url, self.valid_user_data, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class UserLoginTestCase(TestCase):
    """Tests for user login functionality"""

    def setUp(self):
        self.client = APIClient()
        self.login_url = "/api/v1/auth/login/"
        self.password = "SecurePass123!"
        self.user = User.objects.create_user(
            email="loginuser@example.com", password=self.password, role=Role.ADMIN
        )

    def test_login_success(self):
        """Test successful login returns a token pair carrying the role"""
        response = self.client.post(
            self.login_url, {"email": self.user.email, "password": self.password}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tokens = response.data["data"]["tokens"]
        self.assertIn("access", tokens)
        self.assertIn("refresh", tokens)

        claims = TokenService.validate(tokens["access"])
        self.assertEqual(claims.subject, str(self.user.id))
        self.assertEqual(claims.role, Role.ADMIN)

    def test_login_invalid_credentials(self):
        """Test login fails with invalid password"""
        response = self.client.post(
            self.login_url, {"email": self.user.email, "password": "WrongPassword123!"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"], "authentication_error")

    def test_login_inactive_user(self):
        """Test deactivated accounts cannot log in"""
        self.user.is_active = False
        self.user.save()

        response = self.client.post(
            self.login_url, {"email": self.user.email, "password": self.password}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_missing_fields(self):
        """Test login without a password is a validation error"""
        response = self.client.post(self.login_url, {"email": self.user.email}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class TokenServiceTestCase(TestCase):
    """Tests for bearer token validation"""

    def setUp(self):
        self.user = User.objects.create_user(email="token@example.com", password="pass")

    def test_validate_garbage_token(self):
        with self.assertRaises(AuthenticationError):
            TokenService.validate("not-a-token")

    def test_validate_token_without_role(self):
        """Test tokens lacking the role claim are rejected"""
        token = AccessToken.for_user(self.user)

        with self.assertRaises(AuthenticationError):
            TokenService.validate(str(token))

    def test_validate_issued_token(self):
        tokens = TokenService.issue_for(self.user)

        claims = TokenService.validate(tokens["access"])

        self.assertEqual(claims.role, Role.CUSTOMER)
        self.assertEqual(claims.token["user_id"], str(self.user.id))


class UserEndpointsTestCase(TestCase):
    """Tests for the paginated user directory and profile endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.users_url = "/api/v1/users/"
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass", role=Role.ADMIN
        )
        self.customer = User.objects.create_user(
            email="customer@example.com", password="pass"
        )

    def authenticate(self, user):
        access = TokenService.issue_for(user)["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    def test_admin_lists_users_with_pagination_header(self):
        self.authenticate(self.admin)

        response = self.client.get(f"{self.users_url}?pageNumber=1&pageSize=1")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        metadata = json.loads(response["X-Pagination"])
        self.assertEqual(metadata["totalCount"], 2)
        self.assertEqual(metadata["pageSize"], 1)
        self.assertTrue(metadata["hasNextPage"])
        self.assertFalse(metadata["hasPreviousPage"])

    def test_customer_cannot_list_users(self):
        self.authenticate(self.customer)

        response = self.client.get(self.users_url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "permission_error")

    def test_anonymous_cannot_list_users(self):
        response = self.client.get(self.users_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"], "authentication_error")

    def test_invalid_token_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")

        response = self.client.get(self.users_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_without_role_claim_rejected(self):
        """Test access tokens not issued by the token service are refused"""
        access = AccessToken.for_user(self.admin)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        response = self.client.get(self.users_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"], "authentication_error")

    def test_refreshed_access_token_accepted(self):
        """Test the refresh endpoint hands out access tokens that keep the role claim"""
        refresh = TokenService.issue_for(self.admin)["refresh"]

        response = self.client.post(
            "/api/v1/auth/token/refresh/", {"refresh": refresh}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

        response = self.client.get(self.users_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_user_detail_not_found(self):
        self.authenticate(self.admin)

        response = self.client.get(f"{self.users_url}{uuid.uuid4()}/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn("message", response.data)

    def test_current_user(self):
        self.authenticate(self.customer)

        response = self.client.get(f"{self.users_url}me/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["email"], self.customer.email)
        self.assertEqual(response.data["data"]["role"], Role.CUSTOMER)

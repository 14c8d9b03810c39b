from datetime import timedelta
from decimal import Decimal
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status
from apps.accounts.models import User, PasswordResetCode
from apps.orders.services.cart_service import CartService
from apps.orders.services.order_service import OrderService
from apps.products.models import Product
from common.models import AdminActionLog, AuthenticationLog


class TestAccountsAPI(APITestCase):

    def setUp(self):

        # URLs
        self.register_url = reverse("accounts:register")
        self.login_url = reverse("jwt_login")
        self.me_url = reverse("accounts:me")

        # Test User
        self.user_data = {
            "email": "user@test.com",
            "phone_number": "0912345678",
            "full_name": "Test User",
            "password": "StrongPass123!",
            "password_confirm": "StrongPass123!",
        }
        self.login_data = {
            "phone_number": "0912345678",
            "password": "StrongPass123!",
        }

    # ======================================================
    # REGISTER TESTS
    # ======================================================

    def test_register_success(self):

        response = self.client.post(self.register_url, self.user_data)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email="user@test.com")
        self.assertEqual(user.phone_number, "0912345678")
        self.assertEqual(user.role, User.Role.CUSTOMER)

    def test_register_duplicate_email(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.register_url, {**self.user_data, "phone_number": "0998765432"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_duplicate_phone(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.register_url, {**self.user_data, "email": "second@test.com"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone_number", response.data)

    def test_register_password_mismatch(self):

        response = self.client.post(self.register_url, {**self.user_data, "password_confirm": "Different123!"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_missing_password(self):

        response = self.client.post(self.register_url, {
            "email": "nopass@test.com",
            "phone_number": "0911111111",
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # ======================================================
    # CUSTOMER LOGIN TESTS
    # ======================================================

    def test_jwt_login_success(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.login_url, self.login_data)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["role"], User.Role.CUSTOMER)
        self.assertTrue(
            AuthenticationLog.objects.filter(action=AuthenticationLog.Action.LOGIN, success=True).exists()
        )

    def test_login_wrong_password(self):

        self.client.post(self.register_url, self.user_data)

        response = self.client.post(self.login_url, {
            "phone_number": "0912345678",
            "password": "WrongPassword123"
        })

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertTrue(
            AuthenticationLog.objects.filter(action=AuthenticationLog.Action.FAILED_LOGIN).exists()
        )

    def test_login_non_existing_user(self):

        response = self.client.post(self.login_url, {
            "phone_number": "0900000000",
            "password": "123456"
        })

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_with_formatted_phone_number(self):

        self.client.post(self.register_url, {**self.user_data, "phone_number": "0912-345-678"})
        self.assertEqual(User.objects.get(email="user@test.com").phone_number, "0912345678")

        for phone_number in ("0912-345-678", "0912 345 678", "0912345678"):
            response = self.client.post(self.login_url, {
                "phone_number": phone_number,
                "password": "StrongPass123!"
            })
            self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_inactive_user_cannot_login(self):

        self.client.post(self.register_url, self.user_data)
        User.objects.filter(email="user@test.com").update(is_active=False)

        response = self.client.post(self.login_url, self.login_data)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.data["is_active"])

    def test_login_locked_after_repeated_failures(self):

        self.client.post(self.register_url, self.user_data)

        for _ in range(5):
            self.client.post(self.login_url, {"phone_number": "0912345678", "password": "Wrong123!"})

        response = self.client.post(self.login_url, self.login_data)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("locked", str(response.data["detail"]))

    # ======================================================
    # PROFILE TESTS
    # ======================================================

    def test_me_endpoint_requires_auth(self):

        response = self.client.get(self.me_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_endpoint_with_token(self):

        # Register
        self.client.post(self.register_url, self.user_data)

        # Login
        login_response = self.client.post(self.login_url, self.login_data)
        token = login_response.data["access"]

        # Set Authorization Header
        self.client.credentials(
            HTTP_AUTHORIZATION=f"Bearer {token}"
        )

        response = self.client.get(self.me_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "user@test.com")

    def test_me_update_cannot_change_role(self):

        self.client.post(self.register_url, self.user_data)
        user = User.objects.get(email="user@test.com")
        self.client.force_authenticate(user=user)

        response = self.client.patch(self.me_url, {"address": "12 Main St", "role": "ADMIN"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.address, "12 Main St")
        self.assertEqual(user.role, User.Role.CUSTOMER)


class TestAdminAPI(APITestCase):

    def setUp(self):

        self.admin_login_url = reverse("jwt_admin_login")
        self.user_list_url = reverse("accounts:user_list")

        self.admin = User.objects.create_user(
            email="admin@test.com",
            password="AdminPass123!",
            role=User.Role.ADMIN,
            is_staff=True,
        )
        self.customer = User.objects.create_user(
            email="customer@test.com",
            password="CustomerPass123!",
            phone_number="0933333333",
        )

    # ======================================================
    # ADMIN LOGIN TESTS
    # ======================================================

    def test_admin_login_reports_first_login_once(self):

        credentials = {"email": "admin@test.com", "password": "AdminPass123!"}

        first = self.client.post(self.admin_login_url, credentials)
        second = self.client.post(self.admin_login_url, credentials)

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertIn("access", first.data)
        self.assertTrue(first.data["is_first_login"])
        self.assertEqual(first.data["user"]["role"], User.Role.ADMIN)
        self.assertFalse(second.data["is_first_login"])

    def test_customer_cannot_use_admin_login(self):

        response = self.client.post(self.admin_login_url, {
            "email": "customer@test.com",
            "password": "CustomerPass123!"
        })

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_login_wrong_password(self):

        response = self.client.post(self.admin_login_url, {
            "email": "admin@test.com",
            "password": "nope"
        })

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    # ======================================================
    # USER MANAGEMENT TESTS
    # ======================================================

    def test_customer_cannot_list_users(self):

        self.client.force_authenticate(user=self.customer)

        response = self.client.get(self.user_list_url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_staff_account(self):

        self.client.force_authenticate(user=self.admin)

        response = self.client.post(self.user_list_url, {
            "email": "staff@test.com",
            "password": "StaffPass123!",
            "full_name": "Staff Member",
            "role": User.Role.STAFF,
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        staff = User.objects.get(email="staff@test.com")
        self.assertTrue(staff.is_staff)
        self.assertTrue(staff.check_password("StaffPass123!"))
        self.assertTrue(
            AdminActionLog.objects.filter(action=AdminActionLog.Action.CREATE_USER, target_user=staff).exists()
        )

    def test_admin_create_requires_password(self):

        self.client.force_authenticate(user=self.admin)

        response = self.client.post(self.user_list_url, {"email": "nopass@test.com"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_updates_user(self):

        self.client.force_authenticate(user=self.admin)
        url = reverse("accounts:user_detail", args=[self.customer.pk])

        response = self.client.patch(url, {"is_active": False})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertFalse(self.customer.is_active)

    def test_admin_deletes_user(self):

        self.client.force_authenticate(user=self.admin)
        url = reverse("accounts:user_detail", args=[self.customer.pk])

        response = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.customer.pk).exists())
        self.assertTrue(AdminActionLog.objects.filter(action=AdminActionLog.Action.DELETE_USER).exists())

    def test_admin_cannot_delete_self(self):

        self.client.force_authenticate(user=self.admin)
        url = reverse("accounts:user_detail", args=[self.admin.pk])

        response = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_delete_user_with_orders(self):

        product = Product.objects.create(name="Kettle", price=Decimal("30.00"), stock=5)
        CartService.add_to_cart(self.customer, product.id, 1)
        OrderService.checkout(self.customer)

        self.client.force_authenticate(user=self.admin)
        url = reverse("accounts:user_detail", args=[self.customer.pk])

        response = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(User.objects.filter(pk=self.customer.pk).exists())


class TestPasswordReset(APITestCase):

    def setUp(self):

        self.forgot_url = reverse("accounts:forgot_password")
        self.reset_url = reverse("accounts:reset_password")
        self.user = User.objects.create_user(
            email="reset@test.com",
            password="OldPass123!",
            phone_number="0944444444",
        )

    def test_forgot_password_unknown_email(self):

        response = self.client.post(self.forgot_url, {"email": "ghost@test.com"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reset_password_flow(self):

        response = self.client.post(self.forgot_url, {"email": "reset@test.com"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        otp = response.data["otp"]
        self.assertEqual(len(otp), 6)
        # Only the hash is stored
        self.assertNotEqual(PasswordResetCode.objects.get(user=self.user).code_hash, otp)

        response = self.client.post(self.reset_url, {
            "email": "reset@test.com",
            "otp": otp,
            "new_password": "NewPass456!",
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("NewPass456!"))

        # Codes are single use
        response = self.client.post(self.reset_url, {
            "email": "reset@test.com",
            "otp": otp,
            "new_password": "Another789!",
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reset_password_wrong_code(self):

        otp = self.client.post(self.forgot_url, {"email": "reset@test.com"}).data["otp"]
        wrong = "000000" if otp != "000000" else "111111"

        response = self.client.post(self.reset_url, {
            "email": "reset@test.com",
            "otp": wrong,
            "new_password": "NewPass456!",
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("OldPass123!"))

    def test_reset_password_expired_code(self):

        otp = self.client.post(self.forgot_url, {"email": "reset@test.com"}).data["otp"]
        PasswordResetCode.objects.filter(user=self.user).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )

        response = self.client.post(self.reset_url, {
            "email": "reset@test.com",
            "otp": otp,
            "new_password": "NewPass456!",
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_new_code_invalidates_previous(self):

        self.client.post(self.forgot_url, {"email": "reset@test.com"})
        second = self.client.post(self.forgot_url, {"email": "reset@test.com"}).data["otp"]

        self.assertEqual(PasswordResetCode.objects.filter(user=self.user).count(), 2)
        self.assertEqual(PasswordResetCode.objects.filter(user=self.user, used=False).count(), 1)

        response = self.client.post(self.reset_url, {
            "email": "reset@test.com",
            "otp": second,
            "new_password": "NewPass456!",
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)

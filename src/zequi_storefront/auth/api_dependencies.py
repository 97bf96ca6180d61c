"""FastAPI dependencies for admin authentication.

Admin endpoints expect the panel password in the ``X-Admin-Password`` header.
"""

from fastapi import HTTPException

from zequi_storefront.auth.admin_password_validator import AdminPasswordValidator


def require_admin_password(
    x_admin_password: str | None,
    validator: AdminPasswordValidator | None = None,
) -> str:
    """Check the admin password sent with a request.

    Args:
        x_admin_password: Value of the X-Admin-Password header
        validator: AdminPasswordValidator instance (None skips the check in tests)

    Returns:
        str: The accepted password

    Raises:
        HTTPException: 401 if the password is missing or wrong
    """
    if not x_admin_password:
        raise HTTPException(status_code=401, detail="Contraseña requerida")

    if validator and not validator.validate(x_admin_password):
        raise HTTPException(status_code=401, detail="Contraseña incorrecta")

    return x_admin_password

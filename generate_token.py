from datetime import timedelta

from auth import create_access_token


def generate_token(email: str, user_id: int | None = None, expiration_minutes: int = 525600):
    """Generate a token for use in development."""
    if user_id is None:
        # Generate OTP token, as if the email had just been verified.
        return create_access_token(
            email, "otp", None, timedelta(minutes=expiration_minutes)
        )
    else:
        # Generate login token.
        return create_access_token(
            email,
            "login",
            user_id,
            timedelta(minutes=expiration_minutes),
        )


if __name__ == "__main__":
    email = input("Enter email: ").strip()
    user_id = input("Enter user id (leave empty for an OTP token): ").strip()
    token = generate_token(email, int(user_id) if user_id else None)
    token_type = "login" if user_id else "otp"

    print(
        f"\nGenerated {token_type} token for {email}. "
        "To use the token in development, send it as a Bearer token:\n\n"
    )
    print(f"Authorization: Bearer {token}")

"""
Create Profile Lambda Handler.
Cognito post-confirmation trigger: creates the profile row for a new user.
Workers start in document_upload_pending, employers in verification_pending.
"""
from shared.exceptions import MarketplaceError
from shared.logging import logger, log_event
from shared.profiles import create_profile


def handler(event, context):
    """
    Cognito must receive the event back for sign-up to complete.
    A failure is re-raised so the confirmation is retried.
    """
    log_event(event)

    attributes = event.get('request', {}).get('userAttributes', {})
    user_id = attributes.get('sub') or event.get('userName')

    try:
        profile = create_profile(
            user_id=user_id,
            email=attributes.get('email'),
            full_name=attributes.get('name'),
            phone=attributes.get('phone_number'),
            role=attributes.get('custom:role'),
            category=attributes.get('custom:category')
        )
        logger.info(f"Profile ready for {user_id}: {profile.get('role')} / {profile.get('workerStatus')}")
    except MarketplaceError as e:
        logger.error(f"Could not create profile for {user_id}: {e.message}")
        raise

    return event

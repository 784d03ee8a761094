from busdirectory.proxy import claims, error_response, preflight, require_caller, response_proxy
from busdirectory.records import now_iso


def lambda_handler(event, context):
    """Lets the frontend check that its Cognito token is accepted."""
    try:
        if event.get('httpMethod') == 'OPTIONS':
            return preflight()

        email = require_caller(event)
        user_claims = claims(event)
        return response_proxy(200, {
            "message": "Protected endpoint accessible - authentication successful!",
            "user": {
                "email": email,
                "name": user_claims.get('name') or user_claims.get('given_name') or email,
                "sub": user_claims.get('sub')
            },
            "timestamp": now_iso(),
            "requestId": (event.get('requestContext') or {}).get('requestId')
        })
    except Exception as e:
        return error_response(e, "Protected ping")

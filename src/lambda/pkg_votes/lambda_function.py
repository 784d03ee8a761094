from busdirectory.errors import BadRequest
from busdirectory.log import log_event
from busdirectory.proxy import (caller_email, error_response, path_param, preflight,
                                require_caller, response_proxy)
from busdirectory.repository import get_repository
from busdirectory.votes import cast_report, cast_verify, get_user_vote

repository = get_repository()


def request_action(event):
    # '/buses/{licenseNo}/verify' -> 'verify'
    path = event.get('resource') or event.get('path') or event.get('rawPath') or ''
    return path.rstrip('/').rsplit('/', 1)[-1]


def lambda_handler(event, context):
    try:
        method = event.get('httpMethod') or event.get('requestContext', {}).get('http', {}).get('method')
        if method == 'OPTIONS':
            return preflight()

        license_no = path_param(event, 'licenseNo')
        action = request_action(event)
        log_event("VoteRequest", {"method": method, "action": action, "licenseNo": license_no,
                                  "user": caller_email(event)})

        user = require_caller(event)
        if not license_no:
            raise BadRequest("License number is required")

        if method == 'POST' and action == 'verify':
            return response_proxy(200, cast_verify(repository, license_no, user))
        if method == 'POST' and action == 'report':
            return response_proxy(200, cast_report(repository, license_no, user))
        if method == 'GET' and action == 'my-vote':
            vote = get_user_vote(repository, license_no, user)
            return response_proxy(200, {"hasVoted": vote is not None, "voteType": vote})
        return response_proxy(405, {"error": "Method not allowed"})
    except Exception as e:
        return error_response(e, "Vote function")

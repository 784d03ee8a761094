from busdirectory.errors import BadRequest, NotFound, Unauthenticated
from busdirectory.log import log_event
from busdirectory.records import is_verified

VERIFY = 'verify'
REPORT = 'report'
VOTE_TYPES = (VERIFY, REPORT)


def vote_id(license_no, user):
    return f"{license_no}_{user}"


def vote_transition(current, cast):
    """Returns (next_vote, verify_delta, report_delta).

    Casting the vote you already hold removes it, casting the other one
    switches it.
    """
    if cast not in VOTE_TYPES:
        raise BadRequest(f"Unknown vote type: {cast}")

    if current == cast:
        next_vote = None
    else:
        next_vote = cast

    deltas = {VERIFY: 0, REPORT: 0}
    if current:
        deltas[current] -= 1
    if next_vote:
        deltas[next_vote] += 1
    return next_vote, deltas[VERIFY], deltas[REPORT]


def _cast(repository, license_no, user, vote_type):
    if not user:
        raise Unauthenticated()
    bus = repository.get(license_no)
    if not bus:
        raise NotFound("Bus not found")

    result = repository.apply_vote(license_no, user, vote_type)
    result['verified'] = is_verified({**bus, 'verifyCount': result['verifyCount']})
    log_event("VoteCast", {"licenseNo": license_no, "voteType": vote_type,
                           "userVote": result['userVote'],
                           "verifyDelta": result['verifyDelta'],
                           "reportDelta": result['reportDelta']})
    return result


def cast_verify(repository, license_no, user):
    return _cast(repository, license_no, user, VERIFY)


def cast_report(repository, license_no, user):
    return _cast(repository, license_no, user, REPORT)


def get_user_vote(repository, license_no, user):
    if not user:
        raise Unauthenticated()
    return repository.get_vote(license_no, user)

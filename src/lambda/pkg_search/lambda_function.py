from busdirectory.log import log_event
from busdirectory.proxy import error_response, preflight, response_proxy
from busdirectory.repository import get_repository
from busdirectory.search import search_buses, search_params

repository = get_repository()


def lambda_handler(event, context):
    try:
        if event.get('httpMethod') == 'OPTIONS':
            return preflight()

        params = search_params(event.get('queryStringParameters'))
        log_event("SearchRequest", params)
        return response_proxy(200, search_buses(repository, params))
    except Exception as e:
        return error_response(e, "Search buses")

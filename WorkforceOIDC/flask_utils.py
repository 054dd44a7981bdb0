from flask import make_response, abort


def response_nocache(body='', status=200):

    response = make_response(body, status)

    # MDN recommended for various browsers
    response.headers.add_header('Cache-Control', 'no-cache')
    response.headers.add_header('Cache-Control', 'must-revalidate')
    response.headers.add_header('Pragma', 'no-cache')
    response.headers.add_header('Expires', '0')
    return response


def safe_next(next, default='/'):
    """ Only local paths are accepted as a post-login destination. """

    if not next or not next.startswith('/') or next.startswith('//') or '\\' in next:
        return default
    return next


UnauthorizedError = lambda body=None: abort(401, body)

BadRequestError = lambda body=None: abort(400, body)

ServiceUnavailableError = lambda body=None: abort(503, body)

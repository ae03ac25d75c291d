from ciwatch.core.exceptions import CIWatchException


def safe_json_from_response(response):
    "Check JSON response is HTTP200 and actually JSON."
    response.raise_for_status()

    try:
        return response.json()
    except ValueError:
        # json and simplejson decode errors both derive from ValueError
        raise CIWatchException(f"Cannot decode as JSON:  {response.text}")

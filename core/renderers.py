"""
Core — Response Renderer

Successful responses go out as `{ok: true, data, meta?}`. Payloads the
views already shaped (they carry `ok`) and error bodies built by
core.exceptions are rendered as they are.

@file core/renderers.py
"""

from rest_framework.renderers import JSONRenderer


def _paginated(data) -> bool:
    return isinstance(data, dict) and 'results' in data and 'count' in data


class StandardJSONRenderer(JSONRenderer):

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get('response')
        already_shaped = isinstance(data, dict) and 'ok' in data
        failed = response is not None and response.status_code >= 400

        if data is None or already_shaped or failed:
            return super().render(data, accepted_media_type, renderer_context)

        if _paginated(data):
            data = {
                'ok': True,
                'data': data['results'],
                'meta': {
                    'cantidad': data['count'],
                    'next': data.get('next'),
                    'previous': data.get('previous'),
                },
            }
        else:
            data = {'ok': True, 'data': data}
        return super().render(data, accepted_media_type, renderer_context)

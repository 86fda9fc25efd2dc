from rest_framework.renderers import JSONRenderer


class EnvelopeJSONRenderer(JSONRenderer):
    """
    Wrap successful payloads as {success: true, data: ...}.
    Payloads that already carry a 'success' key (errors, paginated lists)
    pass through unchanged.
    """

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get('response')
        if response is not None and response.status_code == 204:
            return b''

        if isinstance(data, dict) and 'success' in data:
            payload = data
        elif response is not None and response.status_code >= 400:
            payload = {
                'success': False,
                'error': {'message': 'Request failed', 'code': 'ERROR', 'details': data},
            }
        else:
            payload = {'success': True, 'data': data}

        return super().render(payload, accepted_media_type, renderer_context)

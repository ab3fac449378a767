from __future__ import annotations

import base64
import io

import httpx
import pymupdf as fitz
import pytest
from pypdf import PdfReader

from conftest import A4, LETTER, make_pdf, make_png
from pagestamp.adapters import renderer as renderer_mod
from pagestamp.config import Settings
from pagestamp.errors import RenderError, RequestError
from pagestamp.runner import JobRunner
from pagestamp.server import create_app
from pagestamp.types import JobRequest


def _unreachable(request):
    raise httpx.ConnectError('connection refused', request=request)


@pytest.fixture
def rendered_pages(monkeypatch):
    """Replace the HTML engine with a fixed document; set the page list per test."""
    state = {'sizes': [A4], 'html': None}

    def fake_write_pdf(html, base_url):
        state['html'] = html
        return make_pdf(state['sizes'])

    monkeypatch.setattr(renderer_mod, '_write_pdf', fake_write_pdf)
    return state


def _app(handler=_unreachable):
    settings = Settings()
    runner = JobRunner.from_settings(settings, http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    app = create_app(settings, runner=runner)
    app.config['TESTING'] = True
    return app.test_client()


def _decode(payload) -> bytes:
    return base64.b64decode(payload['pdfBase64'])


def test_defaults_produce_single_stamped_page(rendered_pages):
    response = _app().post('/api/generate-pdf', json={})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload['success'] is True
    assert payload['pages'] == 1
    assert payload['watermarkApplied'] is False
    assert '<h1>Hello World</h1>' in rendered_pages['html']

    with fitz.open(stream=_decode(payload), filetype='pdf') as doc:
        page = doc[0]
        assert len(page.get_images()) == 1
        assert 'Sample Code' in page.get_text()


def test_watermark_on_every_page(rendered_pages):
    rendered_pages['sizes'] = [A4, LETTER, A4]
    png = make_png()
    client = _app(lambda request: httpx.Response(200, content=png))

    response = client.post(
        '/api/generate-pdf',
        json={'html': '<p>x</p>', 'watermarkUrl': 'https://img.example.com/wm.png', 'codeName': 'Doc 42'},
    )

    payload = response.get_json()
    assert response.status_code == 200
    assert payload['pages'] == 3
    assert payload['watermarkApplied'] is True
    with fitz.open(stream=_decode(payload), filetype='pdf') as doc:
        for page in doc:
            assert len(page.get_images()) == 2
            assert 'Doc 42' in page.get_text()


def test_unreachable_watermark_still_succeeds(rendered_pages):
    rendered_pages['sizes'] = [A4, A4]

    response = _app().post('/generate-pdf', json={'watermarkUrl': 'https://unreachable.invalid/wm.png'})

    payload = response.get_json()
    assert response.status_code == 200
    assert payload['success'] is True
    assert payload['pages'] == 2
    assert payload['watermarkApplied'] is False
    assert payload['warnings']
    reader = PdfReader(io.BytesIO(_decode(payload)))
    assert len(reader.pages) == 2
    with fitz.open(stream=_decode(payload), filetype='pdf') as doc:
        for page in doc:
            assert len(page.get_images()) == 1


def test_wrong_method_is_405():
    response = _app().get('/api/generate-pdf')
    assert response.status_code == 405
    assert response.get_json() == {'error': 'Method not allowed'}


def test_non_object_body_is_400(rendered_pages):
    response = _app().post('/api/generate-pdf', json=['not', 'an', 'object'])
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid request'


def test_wrong_field_type_is_400(rendered_pages):
    response = _app().post('/api/generate-pdf', json={'code': 123})
    assert response.status_code == 400
    assert 'code' in response.get_json()['details']


def test_render_failure_is_500_with_suggestion(monkeypatch):
    def broken(html, base_url):
        raise RuntimeError('engine exploded')

    monkeypatch.setattr(renderer_mod, '_write_pdf', broken)
    response = _app().post('/api/generate-pdf', json={'html': '<p>x</p>'})

    payload = response.get_json()
    assert response.status_code == 500
    assert payload['error'] == 'Failed to generate PDF'
    assert 'engine exploded' in payload['details']
    assert payload['suggestion'] == 'Check the HTML content and try again'
    assert 'pdfBase64' not in payload


def test_empty_code_payload_is_fatal(rendered_pages):
    response = _app().post('/api/generate-pdf', json={'code': ''})
    assert response.status_code == 500
    assert 'code payload is empty' in response.get_json()['details']


def test_health_and_index():
    client = _app()
    health = client.get('/health').get_json()
    assert health['status'] == 'healthy'
    assert health['policy']['code_size'] == 40
    assert 'POST /api/generate-pdf' in client.get('/').get_json()['endpoints']


def test_request_nulls_fall_back_to_defaults():
    request = JobRequest.model_validate({'html': None, 'code': None, 'codeName': None, 'watermarkUrl': ''})
    assert request.html == '<h1>Hello World</h1>'
    assert request.code == 'https://example.com'
    assert request.code_name == 'Sample Code'
    assert request.watermark_url is None


def test_runner_rejects_oversized_html(rendered_pages):
    runner = JobRunner(max_html_bytes=10)
    with pytest.raises(RequestError, match='HTML too large'):
        runner.run(JobRequest(html='<p>' + 'x' * 100 + '</p>'))


def test_runner_render_error_propagates(monkeypatch):
    def broken(html, base_url):
        raise RuntimeError('boom')

    monkeypatch.setattr(renderer_mod, '_write_pdf', broken)
    with pytest.raises(RenderError):
        JobRunner().run(JobRequest())

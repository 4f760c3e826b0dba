import json
import uuid

import pytest
from django.urls import reverse

from projects.models import Project
from projects.pieces import PieceStatus

pytestmark = pytest.mark.django_db

COMPLETE_URL = '/api/pieces/complete/'


def _post_json(client, url, payload):
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return client.post(url, data=body, content_type='application/json')


def _open(client, project, piece_type):
    url = reverse('projects:open_piece_api', args=[project.project_id, piece_type])
    return client.post(url)


class TestAuthentication:

    @pytest.mark.parametrize('method,url', [
        ('get', '/projects/api/'),
        ('post', COMPLETE_URL),
    ])
    def test_anonymous_gets_401(self, client, method, url):
        response = getattr(client, method)(url)
        assert response.status_code == 401
        assert response.json() == {'error': 'Unauthorized'}


class TestProjectList:

    def test_create_and_list(self, api_client):
        response = _post_json(api_client, '/projects/api/', {'name': 'Habit Tracker', 'description': 'Streaks'})
        assert response.status_code == 201
        data = response.json()
        assert data['success'] is True
        project = data['project']
        assert project['name'] == 'Habit Tracker'
        assert project['progress'] == {'completed': 0, 'total': 5}
        assert [p['piece_type'] for p in project['pieces']] == ['purpose', 'customers', 'boundaries', 'features', 'mvp']
        assert [p['status'] for p in project['pieces']] == ['available'] + ['locked'] * 4
        assert project['pieces'][4]['prerequisites'] == ['purpose', 'customers', 'boundaries', 'features']

        listing = api_client.get('/projects/api/').json()
        assert [p['name'] for p in listing['projects']] == ['Habit Tracker']

    def test_only_own_projects_are_listed(self, api_client, other_user):
        Project.create_with_pieces(owner=other_user, name='Not yours')
        assert api_client.get('/projects/api/').json() == {'projects': []}

    def test_missing_name(self, api_client):
        response = _post_json(api_client, '/projects/api/', {'description': 'no name'})
        assert response.status_code == 400
        assert response.json() == {'success': False, 'error': 'Project name is required'}

    @pytest.mark.parametrize('body', ['{not json', '[1, 2]'])
    def test_invalid_json(self, api_client, body):
        response = _post_json(api_client, '/projects/api/', body)
        assert response.status_code == 400
        assert response.json()['error'] == 'Invalid JSON data'

    def test_method_not_allowed(self, api_client):
        assert api_client.put('/projects/api/').status_code == 405


class TestProjectDetail:

    def test_detail(self, api_client, project):
        response = api_client.get(reverse('projects:project_detail_api', args=[project.project_id]))
        assert response.status_code == 200
        data = response.json()
        assert data['project_id'] == str(project.project_id)
        purpose = data['pieces'][0]
        assert purpose['title'] == 'Purpose & Vision'
        assert purpose['icon'] == '🎯'
        assert purpose['order'] == 1

    def test_unknown_project(self, api_client):
        response = api_client.get(reverse('projects:project_detail_api', args=[uuid.uuid4()]))
        assert response.status_code == 404

    def test_foreign_project(self, client, other_user, project):
        client.force_login(other_user)
        url = reverse('projects:project_detail_api', args=[project.project_id])
        assert client.get(url).status_code == 404
        assert client.delete(url).status_code == 404
        assert Project.objects.filter(pk=project.pk).exists()

    def test_delete(self, api_client, project):
        response = api_client.delete(reverse('projects:project_detail_api', args=[project.project_id]))
        assert response.status_code == 200
        assert response.json()['success'] is True
        assert not Project.objects.exists()

    @pytest.mark.parametrize('method,target', [
        ('get', 'projects.views.get_project_for_user'),
        ('delete', 'projects.views.delete_project'),
    ])
    def test_unexpected_error(self, api_client, project, monkeypatch, method, target):
        def boom(*args, **kwargs):
            raise RuntimeError('db down')

        monkeypatch.setattr(target, boom)
        url = reverse('projects:project_detail_api', args=[project.project_id])
        response = getattr(api_client, method)(url)

        assert response.status_code == 500
        assert response.json() == {'success': False, 'error': 'Internal server error'}


class TestOpenPiece:

    def test_open_available_piece(self, api_client, project):
        response = _open(api_client, project, 'purpose')
        assert response.status_code == 200
        assert response.json()['piece']['status'] == 'in_progress'

    def test_open_locked_piece(self, api_client, project):
        response = _open(api_client, project, 'mvp')
        assert response.status_code == 400
        assert response.json()['success'] is False

    def test_open_unknown_type(self, api_client, project):
        assert _open(api_client, project, 'pricing').status_code == 404


class TestCompletePiece:

    def test_complete(self, api_client, project):
        _open(api_client, project, 'purpose')
        purpose = project.pieces.get(piece_type='purpose')

        response = _post_json(api_client, COMPLETE_URL, {'pieceId': purpose.id, 'summary': 'Less food waste'})

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['message'] == 'Piece completed successfully'
        assert data['unlocked'] == ['customers']
        assert data['piece']['status'] == 'complete'
        assert data['piece']['summary'] == 'Less food waste'
        assert project.pieces.get(piece_type='customers').status == PieceStatus.AVAILABLE

    @pytest.mark.parametrize('payload', [{}, {'pieceId': 1}, {'summary': 'x'}, {'pieceId': 1, 'summary': '  '}])
    def test_missing_fields(self, api_client, payload):
        response = _post_json(api_client, COMPLETE_URL, payload)
        assert response.status_code == 400
        assert response.json()['error'] == 'Missing required fields: pieceId and summary'

    def test_piece_not_in_progress(self, api_client, project):
        purpose = project.pieces.get(piece_type='purpose')
        response = _post_json(api_client, COMPLETE_URL, {'pieceId': purpose.id, 'summary': 'too early'})
        assert response.status_code == 400
        assert project.pieces.get(piece_type='purpose').status == PieceStatus.AVAILABLE

    def test_foreign_piece(self, client, other_user, user, project):
        client.force_login(user)
        _open(client, project, 'purpose')
        purpose = project.pieces.get(piece_type='purpose')

        client.force_login(other_user)
        response = _post_json(client, COMPLETE_URL, {'pieceId': purpose.id, 'summary': 'hijack'})

        assert response.status_code == 404
        assert project.pieces.get(piece_type='purpose').status == PieceStatus.IN_PROGRESS

    def test_foreign_piece_forbidden_when_not_concealed(self, settings, client, other_user, project):
        settings.PIECES_CONCEAL_FOREIGN_PROJECTS = False
        purpose = project.pieces.get(piece_type='purpose')
        client.force_login(other_user)
        response = _post_json(client, COMPLETE_URL, {'pieceId': purpose.id, 'summary': 'hijack'})
        assert response.status_code == 403

    def test_unexpected_error(self, api_client, project, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError('db down')

        monkeypatch.setattr('projects.views.complete_piece', boom)
        response = _post_json(api_client, COMPLETE_URL, {'pieceId': 1, 'summary': 'x'})
        assert response.status_code == 500
        assert response.json() == {'success': False, 'error': 'Internal server error'}

import math

import pytest


TUITION_PAYLOAD = {
    'subject': 'Physics',
    'class': 'HSC',
    'location': 'Mirpur, Dhaka',
    'budget': 8000,
    'schedule': 'Sun, Tue, Thu',
    'description': 'Board exam preparation.',
}


def test_create_tuition_starts_pending(client, db, make_user) -> None:
    owner, headers = make_user()

    response = client.post('/api/tuitions', json=TUITION_PAYLOAD, headers=headers)

    assert response.status_code == 201
    tuition = response.json()['tuition']
    assert tuition['status'] == 'Pending'
    assert tuition['class'] == 'HSC'
    assert tuition['postedBy'] == str(owner['_id'])
    assert tuition['createdAt'] == tuition['updatedAt']
    assert db.tuitions.count_documents({}) == 1


def test_create_tuition_requires_token(client) -> None:
    assert client.post('/api/tuitions', json=TUITION_PAYLOAD).status_code == 401


def test_create_tuition_rejects_missing_subject(client, make_user) -> None:
    _, headers = make_user()
    payload = {key: value for key, value in TUITION_PAYLOAD.items() if key != 'subject'}

    response = client.post('/api/tuitions', json=payload, headers=headers)

    assert response.status_code == 400


def test_list_tuitions_only_returns_approved(client, make_user, make_tuition) -> None:
    owner, _ = make_user()
    approved = make_tuition(owner, status='Approved')
    make_tuition(owner, status='Pending')
    make_tuition(owner, status='Rejected')

    response = client.get('/api/tuitions')

    body = response.json()
    assert response.status_code == 200
    assert [tuition['_id'] for tuition in body['tuitions']] == [str(approved['_id'])]
    assert body['pagination'] == {'page': 1, 'limit': 10, 'total': 1, 'pages': 1}


def test_list_tuitions_filters_case_insensitively(client, make_user, make_tuition) -> None:
    owner, _ = make_user()
    make_tuition(owner, subject='Higher Mathematics', location='Uttara')
    make_tuition(owner, subject='English', location='Uttara')
    make_tuition(owner, subject='Mathematics', location='Banani', status='Pending')

    response = client.get('/api/tuitions', params={'subject': 'math', 'location': 'UTTARA'})

    tuitions = response.json()['tuitions']
    assert [tuition['subject'] for tuition in tuitions] == ['Higher Mathematics']


def test_list_tuitions_treats_filter_text_literally(client, make_user, make_tuition) -> None:
    owner, _ = make_user()
    make_tuition(owner, subject='C++ Programming')
    make_tuition(owner, subject='Chemistry')

    response = client.get('/api/tuitions', params={'subject': 'c++'})

    assert [tuition['subject'] for tuition in response.json()['tuitions']] == ['C++ Programming']


@pytest.mark.parametrize(('page', 'limit'), [(1, 3), (2, 3), (3, 3), (4, 3), (1, 7), (2, 5)])
def test_list_tuitions_pagination_invariant(client, make_user, make_tuition, page: int, limit: int) -> None:
    owner, _ = make_user()
    for index in range(7):
        make_tuition(owner, minutes_ago=index)

    body = client.get('/api/tuitions', params={'page': page, 'limit': limit}).json()

    assert len(body['tuitions']) <= limit
    assert body['pagination']['total'] == 7
    assert body['pagination']['pages'] == math.ceil(7 / limit)
    assert len(body['tuitions']) == max(0, min(limit, 7 - (page - 1) * limit))


def test_list_tuitions_sorts_newest_first_by_default(client, make_user, make_tuition) -> None:
    owner, _ = make_user()
    old = make_tuition(owner, minutes_ago=30)
    new = make_tuition(owner, minutes_ago=1)

    tuitions = client.get('/api/tuitions').json()['tuitions']

    assert [tuition['_id'] for tuition in tuitions] == [str(new['_id']), str(old['_id'])]


def test_list_tuitions_supports_ascending_budget_sort(client, make_user, make_tuition) -> None:
    owner, _ = make_user()
    make_tuition(owner, budget=9000)
    make_tuition(owner, budget=3000)
    make_tuition(owner, budget=6000)

    tuitions = client.get('/api/tuitions', params={'sortBy': 'budget', 'order': 'asc'}).json()['tuitions']

    assert [tuition['budget'] for tuition in tuitions] == [3000, 6000, 9000]


def test_list_tuitions_rejects_zero_limit(client) -> None:
    assert client.get('/api/tuitions', params={'limit': 0}).status_code == 400


def test_latest_returns_six_newest_approved(client, make_user, make_tuition) -> None:
    owner, _ = make_user()
    created = [make_tuition(owner, minutes_ago=index) for index in range(8)]
    make_tuition(owner, status='Pending')

    tuitions = client.get('/api/tuitions/latest/home').json()['tuitions']

    assert [tuition['_id'] for tuition in tuitions] == [str(tuition['_id']) for tuition in created[:6]]


def test_get_tuition_includes_poster(client, make_user, make_tuition) -> None:
    owner, _ = make_user(name='Poster', profileImage='poster.png')
    tuition = make_tuition(owner)

    response = client.get(f'/api/tuitions/{tuition["_id"]}')

    assert response.status_code == 200
    poster = response.json()['tuition']['postedByUser']
    assert poster == {'_id': str(owner['_id']), 'name': 'Poster', 'profileImage': 'poster.png'}


@pytest.mark.parametrize('tuition_id', ['64b7f0c2a1b2c3d4e5f60718', 'not-an-object-id'])
def test_get_tuition_returns_not_found(client, tuition_id: str) -> None:
    response = client.get(f'/api/tuitions/{tuition_id}')

    assert response.status_code == 404
    assert response.json() == {'message': 'Tuition not found'}


def test_my_tuitions_lists_all_statuses_for_owner(client, make_user, make_tuition) -> None:
    owner, headers = make_user()
    other, _ = make_user()
    make_tuition(owner, status='Pending', minutes_ago=5)
    make_tuition(owner, status='Rejected', minutes_ago=1)
    make_tuition(other)

    tuitions = client.get('/api/my-tuitions', headers=headers).json()['tuitions']

    assert [tuition['status'] for tuition in tuitions] == ['Rejected', 'Pending']


def test_owner_can_update_tuition(client, db, make_user, make_tuition) -> None:
    owner, headers = make_user()
    tuition = make_tuition(owner, minutes_ago=10)

    response = client.put(f'/api/tuitions/{tuition["_id"]}', json={'budget': 9500}, headers=headers)

    assert response.status_code == 200
    updated = response.json()['tuition']
    assert updated['updatedAt'] != updated['createdAt']
    stored = db.tuitions.find_one({'_id': tuition['_id']})
    assert stored['budget'] == 9500
    assert stored['subject'] == 'Mathematics'


@pytest.mark.parametrize('payload', [{'budget': 100}, {'budget': 'lots'}, {'subject': ['bad']}])
def test_non_owner_update_is_forbidden_regardless_of_payload(client, db, make_user, make_tuition, payload) -> None:
    owner, _ = make_user()
    _, intruder_headers = make_user()
    tuition = make_tuition(owner)

    response = client.put(f'/api/tuitions/{tuition["_id"]}', json=payload, headers=intruder_headers)

    assert response.status_code == 403
    assert db.tuitions.find_one({'_id': tuition['_id']})['budget'] == 5000


@pytest.mark.parametrize('body', ['{bad', '', '[1, 2'])
def test_non_owner_update_with_unparseable_body_is_forbidden(client, db, make_user, make_tuition, body) -> None:
    owner, _ = make_user()
    _, intruder_headers = make_user()
    tuition = make_tuition(owner)

    response = client.put(
        f'/api/tuitions/{tuition["_id"]}',
        content=body,
        headers={**intruder_headers, 'Content-Type': 'application/json'},
    )

    assert response.status_code == 403
    assert response.json() == {'message': 'Not authorized to update this tuition'}


def test_owner_update_with_unparseable_body_is_invalid(client, make_user, make_tuition) -> None:
    owner, headers = make_user()
    tuition = make_tuition(owner)

    response = client.put(
        f'/api/tuitions/{tuition["_id"]}',
        content='{bad',
        headers={**headers, 'Content-Type': 'application/json'},
    )

    assert response.status_code == 400
    assert response.json()['error'][0]['type'] == 'json_invalid'


@pytest.mark.parametrize(
    'payload',
    [{'subject': None}, {'location': '  '}, {'class': ''}, {'budget': None}, {'subject': None, 'location': '  '}],
)
def test_update_rejects_cleared_required_fields(client, db, make_user, make_tuition, payload) -> None:
    owner, headers = make_user()
    tuition = make_tuition(owner)

    response = client.put(f'/api/tuitions/{tuition["_id"]}', json=payload, headers=headers)

    assert response.status_code == 400
    assert response.json()['message'] == 'Invalid request'
    stored = db.tuitions.find_one({'_id': tuition['_id']})
    assert stored['subject'] == 'Mathematics'
    assert stored['budget'] == 5000


def test_update_trims_text_fields(client, db, make_user, make_tuition) -> None:
    owner, headers = make_user()
    tuition = make_tuition(owner)

    response = client.put(f'/api/tuitions/{tuition["_id"]}', json={'location': '  Sylhet '}, headers=headers)

    assert response.status_code == 200
    assert db.tuitions.find_one({'_id': tuition['_id']})['location'] == 'Sylhet'


def test_update_missing_tuition_returns_not_found(client, make_user) -> None:
    _, headers = make_user()

    response = client.put('/api/tuitions/64b7f0c2a1b2c3d4e5f60718', json={'budget': 1}, headers=headers)

    assert response.status_code == 404


def test_non_owner_delete_is_forbidden(client, db, make_user, make_tuition) -> None:
    owner, _ = make_user()
    _, intruder_headers = make_user()
    tuition = make_tuition(owner)

    response = client.delete(f'/api/tuitions/{tuition["_id"]}', headers=intruder_headers)

    assert response.status_code == 403
    assert db.tuitions.count_documents({}) == 1


def test_owner_delete_removes_tuition_and_its_applications(
    client, db, make_user, make_tuition, make_application,
) -> None:
    owner, headers = make_user()
    tutor, _ = make_user(role='Tutor')
    tuition = make_tuition(owner)
    make_application(tuition, tutor)

    response = client.delete(f'/api/tuitions/{tuition["_id"]}', headers=headers)

    assert response.status_code == 200
    assert db.tuitions.count_documents({}) == 0
    assert db.applications.count_documents({}) == 0

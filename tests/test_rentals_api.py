def rental_body(init_data, **overrides):
    body = {
        'client_id': init_data['customer'].id,
        'rental_type': 'HOURLY',
        'period_type': 'HOURLY',
        'room_id': init_data['hall'].id,
        'start_date': '2025-03-03',
        'start_time': '10:00',
        'end_time': '11:00',
    }
    body.update(overrides)
    return body


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json()['status'] == 'ok'

def test_login_rejects_bad_password(client, init_data):
    res = client.post('/api/auth/login', json={'username': 'manager', 'password': 'wrong'})
    assert res.status_code == 401

def test_token_is_required(client, init_data):
    res = client.post('/api/rentals/check-availability', json=rental_body(init_data))
    assert res.status_code == 401

def test_check_availability(client, init_data, auth_headers):
    res = client.post('/api/rentals/check-availability', json=rental_body(init_data), headers=auth_headers)
    assert res.status_code == 200
    assert res.get_json() == {'available': True, 'conflicts': [], 'resource_found': True}

def test_check_availability_unknown_room(client, init_data, auth_headers):
    res = client.post('/api/rentals/check-availability', json=rental_body(init_data, room_id=999),
                      headers=auth_headers)
    assert res.status_code == 404
    data = res.get_json()
    assert data['available'] is False
    assert data['error'] == 'resource_not_found'

def test_malformed_input_is_400(client, init_data, auth_headers):
    for bad in ({'start_date': '03/03/2025'}, {'start_time': '25:00'}, {'end_date': '2025-03-01', 'period_type': 'DAILY'},
                {'period_type': 'YEARLY'}):
        res = client.post('/api/rentals/check-availability', json=rental_body(init_data, **bad),
                          headers=auth_headers)
        assert res.status_code == 400, bad
        assert 'error' in res.get_json()

def test_create_conflict_and_touching(client, init_data, auth_headers):
    res = client.post('/api/rentals/', json=rental_body(init_data), headers=auth_headers)
    assert res.status_code == 201
    created = res.get_json()
    assert created['application_number'] == '0000001'
    assert created['invoice']['status'] == 'PENDING'

    res = client.post('/api/rentals/', json=rental_body(init_data, start_time='10:30', end_time='11:30'),
                      headers=auth_headers)
    assert res.status_code == 409
    conflicts = res.get_json()['conflicts']
    assert conflicts[0]['application_id'] == created['id']
    assert conflicts[0]['requester'] == 'Petrova Anna'

    res = client.post('/api/rentals/', json=rental_body(init_data, start_time='11:00', end_time='12:00'),
                      headers=auth_headers)
    assert res.status_code == 201

def test_calculate_price(client, init_data, auth_headers):
    res = client.post('/api/rentals/calculate-price', json=rental_body(init_data, end_time='12:30'),
                      headers=auth_headers)
    assert res.status_code == 200
    data = res.get_json()
    assert data['quantity'] == 3
    assert data['price_unit'] == 'HOUR'
    assert data['total_price'] == 150.0

def test_occupancy_grids(client, init_data, auth_headers):
    client.post('/api/rentals/', json=rental_body(init_data), headers=auth_headers)
    res = client.post('/api/rentals/hourly-occupancy', headers=auth_headers,
                      json={'room_id': init_data['hall'].id, 'dates': ['2025-03-03']})
    assert res.status_code == 200
    assert res.get_json() == {'2025-03-03_10': True}

    res = client.post('/api/rentals/daily-occupancy', headers=auth_headers,
                      json={'room_id': init_data['hall'].id, 'start_date': '2025-03-02', 'end_date': '2025-03-04'})
    days = res.get_json()
    assert days['2025-03-02'] is None
    assert days['2025-03-03']['type'] == 'rental'
    assert days['2025-03-04'] is None

def test_get_list_and_lifecycle(client, init_data, auth_headers):
    rental_id = client.post('/api/rentals/', json=rental_body(init_data), headers=auth_headers).get_json()['id']

    assert client.get(f'/api/rentals/{rental_id}', headers=auth_headers).status_code == 200
    assert client.get('/api/rentals/999', headers=auth_headers).status_code == 404
    assert len(client.get('/api/rentals/?status=ACTIVE', headers=auth_headers).get_json()) == 1

    res = client.get(f'/api/rentals/{rental_id}/edit-status', headers=auth_headers)
    assert res.get_json()['can_edit'] is True

    res = client.patch(f'/api/rentals/{rental_id}', json={'end_time': '12:00'}, headers=auth_headers)
    assert res.status_code == 200
    assert res.get_json()['total_price'] == 100.0

    res = client.post(f'/api/rentals/{rental_id}/extend', json={'new_start_date': '2025-03-04'}, headers=auth_headers)
    assert res.status_code == 201
    assert res.get_json()['application_number'] == '0000002'

    res = client.post(f'/api/rentals/{rental_id}/cancel', json={'reason': 'No show'}, headers=auth_headers)
    assert res.status_code == 200
    assert res.get_json()['rental']['status'] == 'CANCELLED'

    res = client.post(f'/api/rentals/{rental_id}/complete', headers=auth_headers)
    assert res.status_code == 400

def test_invoice_payment_endpoint(client, init_data, auth_headers):
    created = client.post('/api/rentals/', json=rental_body(init_data), headers=auth_headers).get_json()
    invoice_id = created['invoice']['id']

    res = client.post(f'/api/invoices/{invoice_id}/payments', json={'amount': 50}, headers=auth_headers)
    assert res.status_code == 200
    assert res.get_json()['invoice']['status'] == 'PAID'

    res = client.get(f'/api/invoices/{invoice_id}', headers=auth_headers)
    assert res.get_json()['paid_amount'] == 50.0

    res = client.patch(f"/api/rentals/{created['id']}", json={'notes': 'x'}, headers=auth_headers)
    assert res.status_code == 400

def test_admin_routes_need_admin(client, init_data, auth_headers, admin_headers):
    body = {'name': 'Studio', 'capacity': 6, 'hourly_rate': 30}
    assert client.post('/api/admin/rooms', json=body, headers=auth_headers).status_code == 403
    res = client.post('/api/admin/rooms', json=body, headers=admin_headers)
    assert res.status_code == 201
    assert res.get_json()['room']['hourly_rate'] == 30.0

    res = client.post(f"/api/admin/rooms/{init_data['open_space'].id}/workspaces",
                      json={'name': 'Desk 4', 'daily_rate': 20}, headers=admin_headers)
    assert res.status_code == 201
    res = client.post(f"/api/admin/rooms/{init_data['open_space'].id}/workspaces",
                      json={'name': 'Desk 4'}, headers=admin_headers)
    assert res.status_code == 400

def test_clients_search(client, init_data, auth_headers):
    res = client.post('/api/admin/clients', json={'first_name': 'Ivan', 'last_name': 'Smirnov'}, headers=auth_headers)
    assert res.status_code == 201
    res = client.get('/api/admin/clients?search=Smir', headers=auth_headers)
    assert [c['last_name'] for c in res.get_json()] == ['Smirnov']

def test_date_with_trailing_text_is_400(client, init_data, auth_headers):
    res = client.post('/api/rentals/check-availability', json=rental_body(init_data, start_date='2025-03-03xyz'),
                      headers=auth_headers)
    assert res.status_code == 400

def test_admin_rejects_malformed_room_values(client, init_data, admin_headers):
    res = client.post('/api/admin/rooms', json={'name': 'Studio', 'hourly_rate': 'abc'}, headers=admin_headers)
    assert res.status_code == 400
    assert 'hourly_rate' in res.get_json()['error']

    res = client.post('/api/admin/rooms', json={'name': 'Studio', 'capacity': 'many'}, headers=admin_headers)
    assert res.status_code == 400

    res = client.put(f"/api/admin/rooms/{init_data['hall'].id}", json={'is_active': 'maybe'}, headers=admin_headers)
    assert res.status_code == 400

    res = client.put(f"/api/admin/workspaces/{init_data['desks'][0].id}", json={'daily_rate': -5},
                     headers=admin_headers)
    assert res.status_code == 400
    assert 'must not be negative' in res.get_json()['error']

def test_maintenance_desk_reported_by_availability(client, init_data, auth_headers, admin_headers):
    first, second, _ = init_data['desks']
    res = client.put(f'/api/admin/workspaces/{first.id}', json={'status': 'MAINTENANCE'}, headers=admin_headers)
    assert res.status_code == 200

    res = client.post('/api/rentals/check-availability', headers=auth_headers, json={
        'rental_type': 'WORKSPACE_DAILY', 'period_type': 'DAILY', 'start_date': '2025-03-03',
        'workspace_ids': [first.id, second.id],
    })
    data = res.get_json()
    assert data['available'] is True
    assert data['selected_workspace_id'] == second.id
    assert data['unavailable_ids'] == [first.id]

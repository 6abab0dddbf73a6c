import logging

from conftest import DAY1, DAY2


def _award(client, camp, points, day=DAY1, **extra):
    body = {'round_selector': {'game_id': camp.night, 'day': day.isoformat()}, 'team_id': camp.blue, 'points': points}
    body.update(extra)
    return client.post('/api/scores', json=body)


def _leaderboard(client):
    return {row['name']: row for row in client.get('/api/leaderboard').get_json()}


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_blue_day_scenario(client, camp):
    # 50 team-level points
    res = _award(client, camp, 50, reason='night game', created_by='judge')
    assert res.status_code == 201
    first = res.get_json()
    assert first['new_total'] == 50
    entry_id = first['entries'][0]['id']

    # 30 team points split evenly across three campers
    ana, ben, cy = camp.blue_players
    res = client.post('/api/scores/team', json={
        'game_id': camp.night,
        'day': DAY1.isoformat(),
        'team_id': camp.blue,
        'total_points': 30,
        'per_player_distribution': {str(ana): 10, str(ben): 10, str(cy): 10},
    })
    assert res.status_code == 201
    team_award = res.get_json()
    assert team_award['new_total'] == 80
    assert [e['points'] for e in team_award['entries']] == [10, 10, 10]

    # Undo the 50
    res = client.post(f'/api/scores/{entry_id}/undo', json={'created_by': 'judge'})
    assert res.status_code == 201
    assert res.get_json()['new_total'] == 30
    assert _leaderboard(client)['Blue']['total_points'] == 30

    # Lock the day
    res = client.post(f'/api/days/{DAY1.isoformat()}/reveal', json={'locked_by': 'director'})
    assert res.status_code == 201
    snapshot = res.get_json()
    blue = next(t for t in snapshot['ordered_teams'] if t['name'] == 'Blue')
    assert blue['day_points'] == 30
    assert blue['total_points_after_day'] == 30
    assert {p['name'] for p in blue['top_players']} == {'Ana', 'Ben', 'Cy'}

    # Further points for that day are refused with a distinct error
    res = _award(client, camp, 5)
    assert res.status_code == 409
    assert res.get_json()['code'] == 'day_locked'
    assert _leaderboard(client)['Blue']['total_points'] == 30


def test_reveal_twice_conflicts(client, camp):
    assert client.post(f'/api/days/{DAY1.isoformat()}/reveal').status_code == 201
    res = client.post(f'/api/days/{DAY1.isoformat()}/reveal')
    assert res.status_code == 409
    assert res.get_json()['code'] == 'already_locked'


def test_snapshot_endpoints(client, camp):
    res = client.get(f'/api/days/{DAY2.isoformat()}/snapshot')
    assert res.status_code == 404
    assert client.get(f'/api/days/{DAY2.isoformat()}/status').get_json()['locked'] is False

    _award(client, camp, 40, day=DAY2)
    client.post(f'/api/days/{DAY2.isoformat()}/reveal', json={'locked_by': 'director'})

    stored = client.get(f'/api/days/{DAY2.isoformat()}/snapshot').get_json()
    assert stored['day'] == DAY2.isoformat()
    assert stored['locked_by'] == 'director'
    assert stored['snapshot']['ordered_teams'][0]['name'] == 'Blue'
    assert client.get(f'/api/days/{DAY2.isoformat()}/status').get_json()['locked'] is True
    assert [d['day'] for d in client.get('/api/days').get_json()] == [DAY2.isoformat()]


def test_undo_errors(client, camp):
    res = client.post('/api/scores/999/undo')
    assert res.status_code == 404
    entry_id = _award(client, camp, 20).get_json()['entries'][0]['id']
    assert client.post(f'/api/scores/{entry_id}/undo').status_code == 201
    res = client.post(f'/api/scores/{entry_id}/undo')
    assert res.status_code == 409
    assert res.get_json()['code'] == 'already_undone'


def test_award_policy_is_enforced(client, camp):
    assert _award(client, camp, 0).status_code == 400
    assert _award(client, camp, 1001).status_code == 400
    assert _award(client, camp, -1000).status_code == 201
    assert _award(client, camp, 'lots').status_code == 400
    res = _award(client, camp, 10.9)
    assert res.status_code == 400
    assert 'whole number' in res.get_json()['error']
    assert _award(client, camp, 12.0).get_json()['entries'][0]['points'] == 12
    res = client.post('/api/scores', json={'team_id': camp.blue, 'points': 5})
    assert res.status_code == 400
    assert res.get_json()['code'] == 'invalid_request'
    res = client.post('/api/scores', json={'game_id': 999, 'team_id': camp.blue, 'points': 5})
    assert res.status_code == 404


def test_rejected_requests_log_warning(client, camp, caplog):
    with caplog.at_level(logging.WARNING):
        assert _award(client, camp, 0).status_code == 400
        assert client.post('/api/scores/999/undo').status_code == 404
    rejected = [r for r in caplog.records if '[api-rejected]' in r.getMessage()]
    assert [r.levelno for r in rejected] == [logging.WARNING, logging.WARNING]
    assert 'code=invalid_request' in rejected[0].getMessage()
    assert 'status=404' in rejected[1].getMessage()


def test_reason_is_truncated(client, camp):
    res = _award(client, camp, 5, reason='x' * 600)
    assert len(res.get_json()['entries'][0]['reason']) == 500


def test_team_award_sum_mismatch_rejected(client, camp):
    ana, ben, cy = camp.blue_players
    res = client.post('/api/scores/team', json={
        'game_id': camp.night,
        'team_id': camp.blue,
        'total_points': 30,
        'per_player_distribution': {str(ana): 10, str(ben): 10},
    })
    assert res.status_code == 400
    assert client.get('/api/scores/recent').get_json() == []
    assert _leaderboard(client)['Blue']['total_points'] == 0


def test_mvp_bonus_adds_second_entry(client, camp):
    ana = camp.blue_players[0]
    res = _award(client, camp, 20, mvp_player_id=ana, mvp_points=15)
    assert res.status_code == 201
    body = res.get_json()
    assert body['new_total'] == 35
    assert [(e['points'], e['reason']) for e in body['entries']] == [(20, None), (15, 'MVP award')]
    assert _award(client, camp, 20, mvp_player_id=ana).status_code == 400


def test_leaderboard_ranks_and_ties(client, camp):
    _award(client, camp, 10)
    client.post('/api/scores', json={'game_id': camp.night, 'team_id': camp.red, 'points': 10})
    rows = client.get('/api/leaderboard').get_json()
    assert [(r['rank'], r['name'], r['total_points']) for r in rows] == [(1, 'Blue', 10), (2, 'Red', 10)]
    assert set(rows[0]) >= {'id', 'name', 'color', 'avatar_url', 'total_points'}

    client.post('/api/scores', json={'game_id': camp.night, 'team_id': camp.red, 'points': 1})
    assert client.get('/api/leaderboard').get_json()[0]['name'] == 'Red'


def test_recent_entries_newest_first(client, camp):
    ana = camp.blue_players[0]
    _award(client, camp, 1)
    _award(client, camp, 2, player_id=ana)
    _award(client, camp, 3)
    feed = client.get('/api/scores/recent?limit=2').get_json()
    assert [e['points'] for e in feed] == [3, 2]
    assert feed[1]['team']['name'] == 'Blue'
    assert feed[1]['player'] == {'name': 'Ana'}
    assert feed[0]['player'] is None


def test_game_standings_and_team_players(client, camp):
    ana, ben, _ = camp.blue_players
    _award(client, camp, 10, player_id=ana)
    _award(client, camp, 4, player_id=ben)
    client.post('/api/scores', json={'game_id': camp.flag, 'team_id': camp.red, 'points': 50})

    standings = client.get(f'/api/games/{camp.night}/standings').get_json()
    assert standings['game']['title'] == 'Night Game'
    assert [(t['name'], t['total_points']) for t in standings['teams']] == [('Blue', 14), ('Red', 0)]
    assert client.get('/api/games/999/standings').status_code == 404

    players = client.get(f'/api/teams/{camp.blue}/players').get_json()
    assert [(p['name'], p['points']) for p in players] == [('Ana', 10), ('Ben', 4), ('Cy', 0)]


def test_judge_accounts(client):
    res = client.post('/users/add', json={'username': ' sam ', 'password': 'pw'})
    assert res.status_code == 201
    judge = res.get_json()
    assert judge['username'] == 'sam'

    res = client.post('/users/add', json={'username': 'sam', 'password': 'other'})
    assert res.status_code == 400
    assert res.get_json()['code'] == 'invalid_request'
    assert client.post('/users/add', json={'username': 'x' * 65, 'password': 'pw'}).status_code == 400
    assert client.post('/users/add', json={'username': 'kim'}).status_code == 400

    client.post('/login', json={'username': 'sam', 'password': 'pw'})
    assert client.get('/me').get_json() == judge
    assert client.get('/logout').get_json() == {'logged_out': judge}
    assert client.get('/me').status_code == 401


def test_logged_in_judge_is_recorded(client, camp):
    client.post('/users/add', json={'username': 'maria', 'password': 's3cret'})
    assert client.post('/login', json={'username': 'maria', 'password': 'wrong'}).status_code == 401
    assert client.post('/login', json={'username': 'maria', 'password': 's3cret'}).status_code == 200
    entry = _award(client, camp, 5).get_json()['entries'][0]
    assert entry['created_by'] == 'maria'
    client.get('/logout')
    entry = _award(client, camp, 5).get_json()['entries'][0]
    assert entry['created_by'] is None

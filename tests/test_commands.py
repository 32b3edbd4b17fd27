from models import Employee
from commands import format_snapshot


def test_create_employee_command(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['employees', 'create', 'sara', 'sara@carrozzeria.test',
                                 '--password', 'sara-password', '--first-name', 'Sara',
                                 '--hourly-rate', '24.5'])
    assert result.exit_code == 0, result.output
    assert 'Created employee sara' in result.output

    with app.app_context():
        employee = Employee.query.filter_by(username='sara').one()
        assert employee.hourly_rate == 24.5
        assert employee.check_password('sara-password')

    again = runner.invoke(args=['employees', 'create', 'sara', 'sara@carrozzeria.test',
                                '--password', 'x'])
    assert again.exit_code != 0
    assert 'already exists' in again.output


def test_create_employee_rejects_negative_rate(app):
    result = app.test_cli_runner().invoke(args=['employees', 'create', 'neg', 'neg@carrozzeria.test',
                                                '--password', 'pw', '--hourly-rate', '-3'])
    assert result.exit_code != 0


def test_dashboard_watch_stops_after_count(app, seed):
    result = app.test_cli_runner().invoke(args=['dashboard', 'watch', '--count', '1'])
    assert result.exit_code == 0, result.output
    assert 'Refreshing every 15s' in result.output
    assert '0/3 working' in result.output


def test_format_snapshot():
    snapshot = {
        'timestamp': '2026-03-02T09:00:00',
        'employees': [
            {'id': 1, 'first_name': 'Mario', 'last_name': 'Rossi', 'open_sessions': 2,
             'active_session': {'order_number': 'ORD-2026-001', 'duration_minutes': 45, 'current_cost': 15.0}},
            {'id': 2, 'first_name': 'Luigi', 'last_name': 'Bianchi', 'open_sessions': 0, 'active_session': None},
        ],
        'totals': {'employees_working': 1, 'total_employees': 2,
                   'hours_in_progress': 0.75, 'cost_in_progress': 15.0},
    }
    lines = format_snapshot(snapshot).splitlines()
    assert lines[0] == '  Mario Rossi: ORD-2026-001 45 min €15.00 (+1 more)'
    assert lines[1] == '[2026-03-02T09:00:00] 1/2 working, 0.75h, €15.00 in progress'

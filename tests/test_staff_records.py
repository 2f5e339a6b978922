"""
Tests for staff attendance with temporary exits, salary records, advance
payments and performance reviews.
"""

from datetime import date, datetime

import pytest

from salon.models.attendance import Attendance, TemporaryExit, minutes_between
from tests.test_auth_admin import create_role, create_user, login


def check_in(client, staff_id):
    return client.post('/api/attendance/check-in', json={'staff_id': staff_id})


def salary(staff_id, **overrides):
    payload = {
        'staff_id': staff_id,
        'month': 10,
        'year': 2026,
        'ot_hours': 6,
        'ot_amount': 1500,
        'extra_days': 1,
        'extra_day_pay': 1000,
        'food_deduction': 500,
        'recur_expense': 200,
        'advance_deducted': 1000,
    }
    payload.update(overrides)
    return payload


def review(staff_id, **overrides):
    payload = {
        'staff_id': staff_id,
        'month': 9,
        'year': 2026,
        'rating': 8,
        'comments': 'Regulars ask for her.',
        'metrics': {'customers_served': 120, 'sales_generated': 85000, 'service_quality': 9},
    }
    payload.update(overrides)
    return payload


class TestWorkingTime:
    """Test the working-time arithmetic without the database."""

    def test_minutes_between_never_negative(self):
        assert minutes_between(datetime(2026, 10, 15, 9, 0), datetime(2026, 10, 15, 9, 59, 59)) == 59
        assert minutes_between(datetime(2026, 10, 15, 9, 0), datetime(2026, 10, 15, 8, 0)) == 0

    def test_exits_are_subtracted(self):
        attendance = Attendance(staff_id=1, date=date(2026, 10, 15), check_in=datetime(2026, 10, 15, 9, 0))
        lunch = TemporaryExit(attendance_id=None, start_time=datetime(2026, 10, 15, 13, 0), reason=' Lunch ')
        lunch.close(datetime(2026, 10, 15, 13, 45))
        attendance.temporary_exits.append(lunch)

        attendance.finish(datetime(2026, 10, 15, 18, 0))
        assert lunch.reason == 'Lunch'
        assert lunch.duration_minutes == 45
        assert attendance.total_working_minutes == 495
        assert attendance.is_work_complete is False
        assert attendance.status == 'incomplete'
        assert attendance.overtime_hours == 0

    def test_full_day_with_overtime(self):
        attendance = Attendance(staff_id=1, date=date(2026, 10, 15), check_in=datetime(2026, 10, 15, 9, 0))
        attendance.finish(datetime(2026, 10, 15, 19, 30))
        assert attendance.total_working_minutes == 630
        assert attendance.is_work_complete is True
        assert attendance.status == 'present'
        assert attendance.overtime_hours == 1.5


class TestAttendance:
    """Test check-in, temporary exits and check-out."""

    def test_check_in_once_per_day(self, client, catalog):
        response = check_in(client, catalog.staff_id)
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['status'] == 'present'
        assert data['staff']['name'] == 'Asha'
        assert data['required_minutes'] == 540

        assert check_in(client, catalog.staff_id).status_code == 409

        today = client.get('/api/attendance').get_json()
        assert [r['id'] for r in today['data']] == [data['id']]
        assert today['date'] == datetime.utcnow().date().isoformat()

    def test_check_in_unknown_staff(self, client):
        assert check_in(client, 404).status_code == 404

    def test_temporary_exit_flow(self, client, catalog):
        attendance = check_in(client, catalog.staff_id).get_json()['data']
        exits_url = f"/api/attendance/{attendance['id']}/exits"

        assert client.post(exits_url, json={'reason': '  '}).status_code == 400
        started = client.post(exits_url, json={'reason': 'Bank visit'})
        assert started.status_code == 201
        exit_ = started.get_json()['data']
        assert exit_['end_time'] is None

        assert client.post(exits_url, json={'reason': 'Coffee'}).status_code == 409
        assert client.post(f"/api/attendance/{attendance['id']}/check-out").status_code == 409

        ended = client.post(f"/api/attendance/exits/{exit_['id']}/end")
        assert ended.status_code == 200
        assert ended.get_json()['data']['end_time'] is not None
        assert client.post(f"/api/attendance/exits/{exit_['id']}/end").status_code == 409

        out = client.post(f"/api/attendance/{attendance['id']}/check-out")
        assert out.status_code == 200
        data = out.get_json()['data']
        assert data['status'] == 'incomplete'
        assert data['is_work_complete'] is False
        assert data['total_working_minutes'] == 0
        assert len(data['temporary_exits']) == 1

        assert client.post(f"/api/attendance/{attendance['id']}/check-out").status_code == 409
        assert client.post(exits_url, json={'reason': 'Late errand'}).status_code == 409

    def test_missing_records(self, client):
        assert client.post('/api/attendance/77/check-out').status_code == 404
        assert client.post('/api/attendance/77/exits', json={'reason': 'Lunch'}).status_code == 404
        assert client.post('/api/attendance/exits/77/end').status_code == 404

    def test_leave_day_turns_into_working_day(self, client, catalog):
        today = datetime.utcnow().date().isoformat()
        marked = client.post('/api/attendance/mark', json={
            'staff_id': catalog.staff_id, 'date': today, 'status': 'on_leave', 'notes': 'Family event',
        })
        assert marked.status_code == 200
        assert marked.get_json()['data']['check_in'] is None

        out = client.post(f"/api/attendance/{marked.get_json()['data']['id']}/check-out")
        assert out.status_code == 409

        response = check_in(client, catalog.staff_id)
        assert response.status_code == 200
        assert response.get_json()['data']['status'] == 'present'

        again = client.post('/api/attendance/mark', json={
            'staff_id': catalog.staff_id, 'date': today, 'status': 'absent',
        })
        assert again.status_code == 409

    def test_mark_rejects_working_statuses(self, client, catalog):
        response = client.post('/api/attendance/mark', json={
            'staff_id': catalog.staff_id, 'date': '2026-10-01', 'status': 'present',
        })
        assert response.status_code == 400
        assert 'status' in response.get_json()['errors']

    def test_monthly_and_history(self, client, catalog):
        for day in ('2026-09-30', '2026-10-01', '2026-10-20'):
            client.post('/api/attendance/mark', json={
                'staff_id': catalog.staff_id, 'date': day, 'status': 'absent',
            })

        monthly = client.get('/api/attendance/monthly?year=2026&month=10').get_json()['data']
        assert [r['date'] for r in monthly] == ['2026-10-01', '2026-10-20']

        history = client.get(f'/api/attendance/staff/{catalog.staff_id}', query_string={
            'start_date': '2026-09-01', 'end_date': '2026-10-10',
        }).get_json()['data']
        assert [r['date'] for r in history] == ['2026-10-01', '2026-09-30']

        absent = client.get('/api/attendance?date=2026-10-20&status=absent').get_json()['data']
        assert len(absent) == 1

    @pytest.mark.parametrize('query', ['', '?year=2026', '?year=2026&month=13'])
    def test_monthly_requires_valid_period(self, client, query):
        assert client.get(f'/api/attendance/monthly{query}').status_code == 400

    def test_bad_filters(self, client, catalog):
        assert client.get('/api/attendance?date=15-10-2026').status_code == 400
        assert client.get('/api/attendance?status=late').status_code == 400
        assert client.get('/api/attendance/staff/999').status_code == 404


class TestSalary:
    """Test salary processing and payment."""

    def test_totals_are_computed(self, client, catalog):
        response = client.post('/api/salary', json=salary(catalog.staff_id, total_earnings=1, net_salary=1))
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['base_salary'] == 30000.0
        assert data['total_earnings'] == 32500.0
        assert data['total_deductions'] == 1700.0
        assert data['net_salary'] == 30800.0
        assert data['is_paid'] is False
        assert data['staff']['name'] == 'Asha'

    def test_reprocessing_replaces_the_month(self, client, catalog):
        first = client.post('/api/salary', json=salary(catalog.staff_id)).get_json()['data']
        response = client.post('/api/salary', json=salary(catalog.staff_id, ot_amount=0, base_salary=28000))
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['id'] == first['id']
        assert data['net_salary'] == 27300.0
        assert len(client.get('/api/salary').get_json()['data']) == 1

    def test_base_salary_needed_without_staff_salary(self, client):
        staff = client.post('/api/staff', json={
            'name': 'Ravi', 'email': 'ravi@example.com', 'position': 'Assistant',
        }).get_json()['data']
        assert client.post('/api/salary', json=salary(staff['id'])).status_code == 400
        assert client.post('/api/salary', json=salary(staff['id'], base_salary=15000)).status_code == 201

    def test_invalid_period(self, client, catalog):
        response = client.post('/api/salary', json=salary(catalog.staff_id, month=13, food_deduction=-1))
        assert response.status_code == 400
        errors = response.get_json()['errors']
        assert 'month' in errors and 'food_deduction' in errors

    def test_mark_paid(self, client, catalog):
        record = client.post('/api/salary', json=salary(catalog.staff_id)).get_json()['data']
        url = f"/api/salary/{record['id']}"

        assert client.patch(url, json={'is_paid': True}).status_code == 400
        assert client.patch(url, json={'is_paid': False, 'paid_date': '2026-11-01'}).status_code == 400

        response = client.patch(url, json={'is_paid': True, 'paid_date': '2026-11-01'})
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['is_paid'] is True
        assert data['paid_date'] == '2026-11-01'

        assert client.post('/api/salary', json=salary(catalog.staff_id)).status_code == 409
        assert client.patch('/api/salary/999', json={'is_paid': True, 'paid_date': '2026-11-01'}).status_code == 404

    def test_list_filters_and_order(self, client, catalog):
        for year, month in ((2025, 12), (2026, 2), (2026, 1)):
            client.post('/api/salary', json=salary(catalog.staff_id, year=year, month=month))

        records = client.get('/api/salary').get_json()['data']
        assert [(r['year'], r['month']) for r in records] == [(2026, 1), (2026, 2), (2025, 12)]

        filtered = client.get('/api/salary?year=2026&month=2').get_json()['data']
        assert [(r['year'], r['month']) for r in filtered] == [(2026, 2)]
        assert client.get('/api/salary?year=last').status_code == 400

    def test_detail_and_delete(self, client, catalog):
        record = client.post('/api/salary', json=salary(catalog.staff_id)).get_json()['data']
        assert client.get(f"/api/salary/{record['id']}").get_json()['data']['net_salary'] == 30800.0
        assert client.delete(f"/api/salary/{record['id']}").status_code == 200
        assert client.get(f"/api/salary/{record['id']}").status_code == 404
        assert client.delete(f"/api/salary/{record['id']}").status_code == 404

    def test_read_only_role_cannot_process(self, app, client, catalog):
        role = create_role(client, name='STAFF_VIEWER', permissions=['staff:read'])
        create_user(client, role['id'])
        viewer, _ = login(app, 'viewer@example.com', 'viewer-pass-1')

        assert viewer.get('/api/salary').status_code == 200
        assert viewer.post('/api/salary', json=salary(catalog.staff_id)).status_code == 401


class TestAdvancePayments:
    """Test requesting and deciding salary advances."""

    def request(self, client, staff_id, **overrides):
        payload = {'staff_id': staff_id, 'amount': 5000, 'reason': 'Rent', 'repayment_plan': 'Two instalments'}
        payload.update(overrides)
        return client.post('/api/advance-payments', json=payload)

    def test_request_is_pending(self, client, catalog):
        response = self.request(client, catalog.staff_id)
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['status'] == 'pending'
        assert data['amount'] == 5000.0
        assert data['approved_date'] is None

    @pytest.mark.parametrize('overrides, field', [
        ({'amount': 0}, 'amount'),
        ({'reason': ' '}, 'reason'),
        ({'repayment_plan': ''}, 'repayment_plan'),
    ])
    def test_invalid_request(self, client, catalog, overrides, field):
        response = self.request(client, catalog.staff_id, **overrides)
        assert response.status_code == 400
        assert field in response.get_json()['errors']

    def test_unknown_staff(self, client):
        assert self.request(client, 999).status_code == 404

    def test_approve_then_reject(self, client, catalog):
        payment = self.request(client, catalog.staff_id).get_json()['data']
        url = f"/api/advance-payments/{payment['id']}"

        approved = client.patch(url, json={'status': 'approved'}).get_json()['data']
        assert approved['status'] == 'approved'
        assert approved['approved_date'] is not None

        rejected = client.patch(url, json={'status': 'rejected'}).get_json()['data']
        assert rejected['status'] == 'rejected'
        assert rejected['approved_date'] is None

        assert client.patch(url, json={'status': 'pending'}).status_code == 400
        assert client.patch('/api/advance-payments/999', json={'status': 'approved'}).status_code == 404

    def test_list_and_delete(self, client, catalog):
        first = self.request(client, catalog.staff_id).get_json()['data']
        second = self.request(client, catalog.staff_id, amount=1000).get_json()['data']
        client.patch(f"/api/advance-payments/{second['id']}", json={'status': 'approved'})

        pending = client.get('/api/advance-payments?status=pending').get_json()['data']
        assert [p['id'] for p in pending] == [first['id']]
        assert client.get('/api/advance-payments?status=paid').status_code == 400

        assert client.delete(f"/api/advance-payments/{first['id']}").status_code == 200
        remaining = client.get(f'/api/advance-payments?staff_id={catalog.staff_id}').get_json()['data']
        assert [p['id'] for p in remaining] == [second['id']]
        assert client.delete(f"/api/advance-payments/{first['id']}").status_code == 404


class TestPerformance:
    """Test monthly performance reviews."""

    def test_create_with_nested_metrics(self, client, catalog):
        response = client.post('/api/performance', json=review(catalog.staff_id))
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['rating'] == 8
        assert data['metrics'] == {'customers_served': 120, 'sales_generated': 85000.0, 'service_quality': 9}

    def test_one_review_per_month(self, client, catalog):
        client.post('/api/performance', json=review(catalog.staff_id))
        assert client.post('/api/performance', json=review(catalog.staff_id, rating=9)).status_code == 409

    def test_rating_bounds(self, client, catalog):
        response = client.post('/api/performance', json=review(
            catalog.staff_id, rating=11, metrics={'service_quality': 0},
        ))
        assert response.status_code == 400
        errors = response.get_json()['errors']
        assert 'rating' in errors and 'service_quality' in errors

    def test_list_best_rated_first(self, client, catalog):
        ravi = client.post('/api/staff', json={
            'name': 'Ravi', 'email': 'ravi@example.com', 'position': 'Assistant',
        }).get_json()['data']
        client.post('/api/performance', json=review(catalog.staff_id, rating=6))
        client.post('/api/performance', json=review(ravi['id'], rating=9))
        client.post('/api/performance', json=review(ravi['id'], month=8, year=2025, rating=10))

        records = client.get('/api/performance?year=2026').get_json()['data']
        assert [(r['staff']['name'], r['rating']) for r in records] == [('Ravi', 9), ('Asha', 6)]

        everything = client.get('/api/performance').get_json()['data']
        assert everything[-1]['year'] == 2025

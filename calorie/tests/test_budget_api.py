import unittest
from datetime import date, datetime, timedelta

from fastapi.testclient import TestClient

from calorie.api.api_run import app
from calorie.api.engine_provider import set_engine
from calorie.events.Event_Bus import EventBus
from calorie.infra.State_Repository import StateRepository
from calorie.infra.Storage import InMemoryStorage
from calorie.logic.engine import CalorieBudgetEngine
from calorie.utilities.clock import FixedClock

MONDAY = date(2025, 3, 3)


class TestBudgetAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.clock = FixedClock(datetime(2025, 3, 3, 9, 0))
        self.engine = CalorieBudgetEngine(StateRepository(InMemoryStorage()), clock=self.clock, bus=EventBus())
        set_engine(self.engine)

    def tearDown(self):
        set_engine(None)

    def _set_goal(self):
        resp = self.client.post('/api/goal', json={'daily_baseline': 2000, 'current_week_allowance': 14000})
        self.assertEqual(resp.status_code, 200)
        return resp.json()

    def test_no_goal_yet(self):
        resp = self.client.get('/api/week/progress')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.client.get('/api/today/remaining').json(), {'remaining': 0})

    def test_goal_and_progress(self):
        goal = self._set_goal()
        self.assertEqual(goal['week_start_date'], '2025-03-03')
        self.assertEqual(goal['current_week_allowance'], 14000)

        resp = self.client.post('/api/meals', json={'name': 'Oats', 'calories': 500, 'category': 'breakfast'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['calories'], 500)

        progress = self.client.get('/api/week/progress').json()
        self.assertEqual(progress['total_consumed'], 500)
        self.assertEqual(progress['remaining_calories'], 13500)
        self.assertEqual(self.client.get('/api/today/remaining').json()['remaining'], 1500)
        self.assertEqual(self.client.get('/api/lock').json()['locked_target'], 2000)

        redistribution = self.client.get('/api/week/redistribution').json()
        self.assertEqual(redistribution['remaining_days'], 7)

    def test_invalid_meal(self):
        self._set_goal()
        resp = self.client.post('/api/meals', json={'name': '  ', 'calories': 100})
        self.assertEqual(resp.status_code, 422)
        resp = self.client.post('/api/meals', json={'name': 'Cake', 'calories': 100, 'category': 'dessert'})
        self.assertEqual(resp.status_code, 422)

    def test_edit_and_delete_meal(self):
        self._set_goal()
        meal = self.client.post('/api/meals', json={'name': 'Oats', 'calories': 500}).json()
        resp = self.client.put(f"/api/meals/2025-03-03/{meal['id']}", json={'calories': 650})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.engine.state.record_for(MONDAY).consumed, 650)
        self.assertEqual(self.client.delete(f"/api/meals/2025-03-03/{meal['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/meals/2025-03-03/{meal['id']}").status_code, 404)

    def test_banking_validation_errors_are_returned(self):
        self._set_goal()
        resp = self.client.post('/api/banking', json={'target_date': '2025-03-04', 'daily_reduction': 200})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Target date must leave at least one day to bank from", resp.json()['errors'])

        resp = self.client.post('/api/banking', json={'target_date': '2025-03-06', 'daily_reduction': 200})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['plan']['total_banked'], 400)
        self.assertEqual(self.client.get('/api/banking').json()['plan']['target_date'], '2025-03-06')
        self.assertEqual(self.client.delete('/api/banking').status_code, 200)
        self.assertEqual(self.client.delete('/api/banking').status_code, 404)

    def test_recovery_flow(self):
        self._set_goal()
        self.client.post('/api/meals', json={'name': 'Feast', 'calories': 2700, 'category': 'dinner'})
        pending = self.client.get('/api/recovery/pending').json()
        self.assertEqual(pending['event']['excess_calories'], 700)
        self.assertEqual(pending['message']['title'], "Overage Recovery Options")

        plan = self.client.post(f"/api/recovery/events/{pending['event']['id']}/plan").json()
        option_ids = [o['id'] for o in plan['rebalancing_options']]
        self.assertIn('gentle_7day', option_ids)

        resp = self.client.post('/api/recovery/session', json={'plan_id': plan['id'], 'option_id': 'gentle_7day'})
        self.assertEqual(resp.status_code, 200)
        again = self.client.post('/api/recovery/session', json={'plan_id': plan['id'], 'option_id': 'gentle_7day'})
        self.assertEqual(again.status_code, 409)
        self.assertEqual(self.client.delete('/api/recovery/session').status_code, 200)
        self.assertEqual(len(self.client.get('/api/recovery/history').json()), 1)

    def test_recovery_settings(self):
        resp = self.client.put('/api/recovery/settings',
                               json={'thresholds': {'mild': 300, 'moderate': 600, 'severe': 1200}})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.engine.state.recovery.settings.thresholds.mild, 300)
        bad = self.client.put('/api/recovery/settings',
                              json={'thresholds': {'mild': 700, 'moderate': 600, 'severe': 1200}})
        self.assertEqual(bad.status_code, 422)

    def test_week_pdf(self):
        self._set_goal()
        resp = self.client.get('/api/week/pdf')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers['content-type'], 'application/pdf')
        self.assertTrue(resp.content.startswith(b'%PDF'))

    def test_alerts_endpoint(self):
        data = self.client.get('/api/alerts').json()
        self.assertIn('events', data)
        self.assertIn('next_cursor', data)

    def test_rollover_via_refresh(self):
        self._set_goal()
        self.clock.advance(days=7)
        data = self.client.post('/api/refresh').json()
        self.assertTrue(data['rolled_over'])
        self.assertEqual(data['summary']['new_week_start'], (MONDAY + timedelta(days=7)).isoformat())


if __name__ == '__main__':
    unittest.main()

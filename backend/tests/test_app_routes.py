"""Regression tests for application route registration."""
from fastapi.routing import APIRoute

from pulse.main import app


def test_plan_and_energy_routes_registered_once() -> None:
    """Ensure each public endpoint is mounted exactly once."""
    expected = {
        ("POST", "/ai/plans/generate"),
        ("GET", "/ai/plans/today"),
        ("POST", "/ai/plans/{plan_id}/accept"),
        ("POST", "/ai/plans/{plan_id}/reject"),
        ("POST", "/ai/plans/{plan_id}/edit"),
        ("POST", "/energy"),
        ("GET", "/energy"),
        ("GET", "/jobs"),
        ("POST", "/jobs/daily-brain/run"),
    }
    registered = [
        (method, route.path)
        for route in app.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    ]
    for key in expected:
        assert registered.count(key) == 1, key

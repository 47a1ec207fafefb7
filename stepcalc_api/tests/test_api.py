"""
API integration tests.

Tests for API endpoints.
"""

import math

import pytest


def test_root_endpoint(client):
    """Test root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "endpoints" in data


def test_health_check(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


def test_list_functions(client):
    """Test listing built-in functions"""
    response = client.get("/functions")
    assert response.status_code == 200
    data = response.json()
    names = [f["name"] for f in data]
    assert "sqrt" in names
    assert "gcd" in names
    gcd = next(f for f in data if f["name"] == "gcd")
    assert gcd["max_args"] is None


def test_solve(client):
    """Test solving a simple expression"""
    response = client.post("/solve", json={"expression": "1 + 2 * 3 ^ 2"})
    assert response.status_code == 200
    data = response.json()
    assert data["value"] == 19
    assert data["text"] == "19"
    assert data["direction"] == "left_to_right"


@pytest.mark.parametrize("direction,expected", [
    ("left_to_right", 3),
    ("right_to_left", 7),
    ("ltr", 3),
    ("rtl", 7),
])
def test_solve_direction(client, direction, expected):
    """Test evaluation direction"""
    response = client.post("/solve", json={"expression": "8 - 3 - 2", "direction": direction})
    assert response.status_code == 200
    assert response.json()["value"] == expected


def test_solve_with_policy(client):
    """Test truncation policy"""
    response = client.post("/solve", json={
        "expression": "2.57",
        "policy": {"mode": "truncate", "precision": 1}
    })
    assert response.status_code == 200
    assert response.json()["value"] == 2.5


def test_solve_with_variables(client):
    """Test variable bindings"""
    response = client.post("/solve", json={"expression": "2x + 1", "variables": {"x": 4}})
    assert response.status_code == 200
    assert response.json()["value"] == 9


def test_solve_division_by_zero(client):
    """Test division by zero maps to 422"""
    response = client.post("/solve", json={"expression": "1/0"})
    assert response.status_code == 422
    data = response.json()
    assert data["error"]["type"] == "DivideByZeroError"


def test_solve_undefined_variable(client):
    """Test undefined variable maps to 422 with details"""
    response = client.post("/solve", json={"expression": "y + 1"})
    assert response.status_code == 422
    data = response.json()
    assert data["error"]["type"] == "UndefinedVariableError"
    assert data["error"]["details"]["variable"] == "y"


def test_solve_infinite_result(client):
    """Test non-finite results are returned as null plus text"""
    response = client.post("/solve", json={"expression": "factorial(200)"})
    assert response.status_code == 200
    data = response.json()
    assert data["value"] is None
    assert data["text"] == "Infinity"


def test_solve_validation_error(client):
    """Test request validation"""
    response = client.post("/solve", json={"expression": ""})
    assert response.status_code == 422
    assert response.json()["error"]["type"] == "ValidationError"


def test_solve_invalid_direction(client):
    """Test invalid direction is rejected"""
    response = client.post("/solve", json={"expression": "1", "direction": "sideways"})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["type"] == "ValidationError"
    assert "Unknown direction" in str(error["details"])


def test_solve_with_steps(client):
    """Test step-by-step evaluation"""
    response = client.post("/solve/steps", json={"expression": "SUM(1,3,i^2)"})
    assert response.status_code == 200
    data = response.json()
    assert data["formatted_result"] == 14
    assert [step["result"] for step in data["steps"]] == [1, 5, 14]
    assert "Start Calculation" in data["report"]


def test_solve_with_steps_error(client):
    """Test failures are reported inside the steps response"""
    response = client.post("/solve/steps", json={"expression": "1/0"})
    assert response.status_code == 200
    data = response.json()
    assert data["formatted_result"] is None
    assert data["steps"][-1]["expression"].startswith("Error:")
    assert data["steps"][-1]["result"] is None


def test_solve_text(client):
    """Test text rendering"""
    response = client.post("/solve/text", json={
        "expression": "\\frac{1}{3}",
        "policy": {"mode": "round", "precision": 4}
    })
    assert response.status_code == 200
    assert response.json()["text"] == "0.3333"


def test_solve_text_error(client):
    """Test text rendering of errors"""
    response = client.post("/solve/text", json={"expression": "sqrt(-1)"})
    assert response.status_code == 200
    assert response.json()["text"].startswith("Error:")


def test_derivative(client):
    """Test numerical derivative"""
    response = client.post("/derivative", json={"expression": "x^2", "x": 3})
    assert response.status_code == 200
    assert response.json()["value"] == pytest.approx(6, abs=1e-4)


def test_derivative_order_too_high(client):
    """Test derivative order limit"""
    response = client.post("/derivative", json={"expression": "x^2", "x": 1, "order": 50})
    assert response.status_code == 422
    assert response.json()["error"]["type"] == "RangeError"


def test_taylor(client):
    """Test Taylor series approximation"""
    response = client.post("/taylor", json={"expression": "exp(x)", "x0": 0, "x": 1, "terms": 8})
    assert response.status_code == 200
    assert response.json()["value"] == pytest.approx(math.e, abs=1e-3)


@pytest.mark.parametrize("path,body", [
    ("/derivative", {"expression": "x^2", "x": 1, "variable": "1x"}),
    ("/taylor", {"expression": "x^2", "x0": 0, "x": 1, "terms": 3, "variable": "a-b"}),
])
def test_invalid_variable_name(client, path, body):
    """Test the differentiation variable must be an identifier"""
    response = client.post(path, json=body)
    assert response.status_code == 422
    assert response.json()["error"]["type"] == "ValidationError"


def test_unknown_route(client):
    """Test unknown paths are plain 404s"""
    response = client.get("/nope")
    assert response.status_code == 404

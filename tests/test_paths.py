from wirebind.render.paths import base_tag, snake_case, to_openapi_path


def test_to_openapi_path_normalizes_param_styles():
    assert to_openapi_path("/users/:id") == "/users/{id}"
    assert to_openapi_path("users/<int:id>/") == "/users/{id}"
    assert to_openapi_path("/orgs/:org/users/:user_id") == "/orgs/{org}/users/{user_id}"
    assert to_openapi_path("/already/{id}") == "/already/{id}"
    assert to_openapi_path("//a//b/") == "/a/b"
    assert to_openapi_path("") == "/"
    assert to_openapi_path("/") == "/"


def test_base_tag_title_cases_first_segment():
    assert base_tag("/users/:id") == "Users"
    assert base_tag("/user_groups/{id}") == "User Groups"
    assert base_tag("/api-keys") == "Api Keys"
    assert base_tag("/") == ""


def test_snake_case():
    assert snake_case("UserService") == "user_service"
    assert snake_case("getHTTPResponse") == "get_http_response"
    assert snake_case("list_users") == "list_users"
    assert snake_case("") == "op"

from modules.routing.navigator import Navigator


class TestNavigator:
    def test_initial_path(self):
        nav = Navigator("/student")
        assert nav.current_path == "/student"
        assert nav.history == ["/student"]

    def test_navigate_pushes(self):
        nav = Navigator()
        nav.navigate("/teacher")
        nav.navigate("/teacher/chats")
        assert nav.history == ["/", "/teacher", "/teacher/chats"]

    def test_replace(self):
        nav = Navigator()
        nav.navigate("/student/courses")
        nav.navigate("/login", replace=True)
        assert nav.history == ["/", "/login"]

    def test_back(self):
        nav = Navigator()
        nav.navigate("/a")
        assert nav.back() == "/"
        assert nav.back() == "/"

    def test_is_auth_page(self):
        nav = Navigator("/login")
        assert nav.is_auth_page()
        assert nav.is_auth_page("/register/teacher")
        assert not nav.is_auth_page("/student/courses")

    def test_reload_listeners_only_on_reload(self):
        nav = Navigator()
        calls = []
        unsubscribe = nav.on_reload(lambda: calls.append(nav.current_path))

        nav.navigate("/student")
        nav.navigate("/login", reload=True)
        unsubscribe()
        nav.navigate("/login", reload=True)

        assert calls == ["/login"]

class TodoistClientError(RuntimeError):
    pass


class TodoistAuthError(TodoistClientError):
    pass


class TodoistPayloadError(TodoistClientError):
    pass

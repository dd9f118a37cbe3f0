"""
MovieGo API: Routes
===================

    GET    /v1/healthcheck             healthcheck.py
    GET    /v1/movies                  movies.py      movies:read
    POST   /v1/movies                  movies.py      movies:write
    GET    /v1/movies/{id}             movies.py      movies:read
    PATCH  /v1/movies/{id}             movies.py      movies:write
    DELETE /v1/movies/{id}             movies.py      movies:write
    POST   /v1/users                   users.py
    PUT    /v1/users/activated         users.py
    POST   /v1/tokens/authentication   tokens.py
    GET    /debug/metrics              metrics.py
"""

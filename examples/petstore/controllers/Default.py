"""Operations without a dedicated handler module."""


def listhealth(request, response, next):
    response.send({"status": "ok"})

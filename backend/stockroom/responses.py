# Overview: Success envelope helpers shared by blueprints.

from flask import jsonify


def ok(data=None, status: int = 200):
    """{"status": <code>, "data": <payload>}"""
    body = {"status": status}
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def no_content():
    return "", 204

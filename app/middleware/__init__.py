"""
Middlewares pour Cocorico API.

- RequestIDMiddleware: propage un X-Request-ID et l'injecte dans les logs
- TimingMiddleware: mesure le temps de reponse, log les requetes lentes
- register_exception_handlers: conversion uniforme des erreurs en JSON
"""
from app.middleware.exception_handler import register_exception_handlers
from app.middleware.request_id import RequestIDMiddleware
from app.middleware.timing import TimingMiddleware

__all__ = ["RequestIDMiddleware", "TimingMiddleware", "register_exception_handlers"]

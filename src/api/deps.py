"""Accessors for the services create_app() attaches to app.state."""

from __future__ import annotations

from fastapi import Request

from src.core.chat_service import ChatService
from src.core.classifier import Classifier
from src.core.digest import DigestGenerator
from src.core.plan_service import PlanService
from src.data.db import EntryDB
from src.integrations.google_maps import GoogleMapsClient


def get_entry_db(request: Request) -> EntryDB:
    return request.app.state.entry_db


def get_classifier(request: Request) -> Classifier:
    return request.app.state.classifier


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_plan_service(request: Request) -> PlanService:
    return request.app.state.plan_service


def get_digest_generator(request: Request) -> DigestGenerator:
    return request.app.state.digest_generator


def get_maps(request: Request) -> GoogleMapsClient:
    return request.app.state.maps

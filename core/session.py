from dataclasses import dataclass, field
from typing import List, Optional

from core.api_client import ApiClient
from core.config import settings
from core.errors import NotAuthenticated
from core.log_sink import LogSink
from core.models import LoginResponse, Project, TestCase
from core.plan_loader import LoadedPlan


@dataclass
class Session:
    """Who is signed in, against which service, and which project is open.

    Created at login and handed to every collaborator that needs auth or the
    current project; invalidate() is the logout.
    """

    base_url: str = settings.api_base_url
    token: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[str] = None
    projects: List[Project] = field(default_factory=list)
    current_project_id: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "Session":
        return cls(base_url=settings.api_base_url, token=settings.api_token)

    @classmethod
    def from_login(cls, login: LoginResponse, base_url: Optional[str] = None) -> "Session":
        return cls(
            base_url=base_url or settings.api_base_url,
            token=login.token,
            user_id=login.userid,
            role=login.role,
            projects=list(login.projects),
        )

    @property
    def active(self) -> bool:
        return bool(self.token)

    @property
    def current_project(self) -> Optional[Project]:
        return self.find_project(self.current_project_id)

    def find_project(self, project_id: Optional[str]) -> Optional[Project]:
        return next((p for p in self.projects if p.projectid == project_id), None)

    def select_project(self, project_id: str) -> None:
        if self.projects and self.find_project(project_id) is None:
            raise KeyError(f"Project {project_id} is not available to this user")
        self.current_project_id = project_id

    def invalidate(self) -> None:
        self.token = None
        self.user_id = None
        self.role = None
        self.projects = []
        self.current_project_id = None

    def client(self) -> ApiClient:
        if not self.active:
            raise NotAuthenticated("No bearer token in the current session")
        return ApiClient(base_url=self.base_url, token=self.token)


@dataclass
class ExecutorState:
    project_id: str
    test_cases: List[TestCase] = field(default_factory=list)
    selected_test_case_id: Optional[str] = None
    plan: Optional[LoadedPlan] = None
    log: LogSink = field(default_factory=lambda: LogSink(max_lines=settings.log_max_lines))
    running: bool = False

    def select_test_case(self, test_case_id: Optional[str]) -> None:
        if test_case_id != self.selected_test_case_id:
            self.plan = None
        self.selected_test_case_id = test_case_id

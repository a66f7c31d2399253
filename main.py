import logging
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

from aggregation import leaderboard, user_summary
from config import settings
from database import get_store
from errors import register_exception_handlers
from issues import IssueService
from schemas import IssueCreate, StatusUpdate, RewardRequest

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("nagarseva")

APP_NAME = settings.app_name

app = FastAPI(title=APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

service = IssueService(get_store(settings), settings)


def get_service() -> IssueService:
    return service


# ---------- Basic routes ----------
@app.get("/")
def root():
    return {"message": f"{APP_NAME} running"}


@app.get("/api/health")
def health(svc: IssueService = Depends(get_service)):
    return {"status": "ok", "message": f"{APP_NAME} backend running", "store": svc.store.name}


# ---------- Issue endpoints ----------
@app.post("/api/issues", status_code=201)
def create_issue(body: IssueCreate, svc: IssueService = Depends(get_service)):
    return {"issue": svc.create(body)}


@app.get("/api/issues")
def list_issues(status: Optional[str] = None, category: Optional[str] = None,
                city: Optional[str] = None, svc: IssueService = Depends(get_service)):
    return {"issues": svc.list(status=status, category=category, city=city)}


@app.get("/api/issues/by-complaint/{complaint_id}")
def get_issue_by_complaint(complaint_id: str, svc: IssueService = Depends(get_service)):
    return {"issue": svc.get_by_complaint(complaint_id)}


@app.get("/api/issues/{issue_id}")
def get_issue(issue_id: str, svc: IssueService = Depends(get_service)):
    return {"issue": svc.get(issue_id)}


@app.post("/api/issues/{issue_id}/upvote")
def upvote_issue(issue_id: str, svc: IssueService = Depends(get_service)):
    return {"issue": svc.upvote(issue_id)}


@app.patch("/api/issues/{issue_id}/status")
def update_issue_status(issue_id: str, body: StatusUpdate, svc: IssueService = Depends(get_service)):
    return {"issue": svc.set_status(issue_id, body.status, body.note)}


@app.post("/api/issues/{issue_id}/reward")
def award_reward(issue_id: str, body: Optional[RewardRequest] = None,
                 svc: IssueService = Depends(get_service)):
    amount = body.amount if body else None
    issue, reporter = svc.award(issue_id, amount)
    return {"issue": issue, "reporter": reporter}


# ---------- Citizen endpoints ----------
@app.get("/api/leaderboard")
def get_leaderboard(svc: IssueService = Depends(get_service)):
    return {"leaderboard": leaderboard(svc.store, svc.config.leaderboard_size)}


@app.get("/api/user-summary")
def get_user_summary(phone: Optional[str] = None, name: Optional[str] = None,
                     svc: IssueService = Depends(get_service)):
    return user_summary(svc.store, phone=phone, name=name)

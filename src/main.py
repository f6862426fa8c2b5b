import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

# Utils
from utils.log_utils import LogUtil
from utils.environment_utils import EnvironmentUtils

# Database
from database.json_file_storage import JsonFileStorage
from database.flow_store import FlowStore

# Services
from services.stage_rule_engine import StageRuleEngine
from services.flow_lifecycle_service import FlowLifecycleService
from services.message_delivery_service import MessageDeliveryService
from services.generative_reply_service import GenerativeReplyService
from services.bot_control_service import BotControlService
from services.conversation_service import ConversationService
from services.follow_up_scheduler_service import FollowUpSchedulerService

# APIs
from apis.flow_api import create_flow_api
from apis.webhook_message_api import create_webhook_message_api
from apis.bot_control_api import create_bot_control_api

# Exceptions
from exceptions.flow_exception import FlowException, FlowStoreException

# Utils
log_util = LogUtil()
environment_utils = EnvironmentUtils(log_util=log_util)

# Database
json_file_storage = JsonFileStorage(
    log_util=log_util,
    file_path=environment_utils.get_env_variable("FLOW_STORE_PATH")
)
flow_store = FlowStore(log_util=log_util, storage=json_file_storage)

# External collaborators
http_timeout_seconds = environment_utils.get_env_variable("HTTP_TIMEOUT_SECONDS")
message_delivery_service = MessageDeliveryService(
    log_util=log_util,
    delivery_api_url=environment_utils.get_env_variable("MESSAGE_DELIVERY_URL"),
    timeout_seconds=http_timeout_seconds
)
generative_reply_service = GenerativeReplyService(
    log_util=log_util,
    generative_api_url=environment_utils.get_env_variable("GENERATIVE_REPLY_URL"),
    timeout_seconds=http_timeout_seconds
)

# Services
stage_rule_engine = StageRuleEngine(
    log_util=log_util,
    two_step_transitions=environment_utils.get_env_variable("FLOW_TWO_STEP_TRANSITIONS")
)
flow_lifecycle_service = FlowLifecycleService(log_util=log_util, flow_store=flow_store)
bot_control_service = BotControlService(log_util=log_util)

conversation_service = ConversationService(
    log_util=log_util,
    flow_store=flow_store,
    stage_rule_engine=stage_rule_engine,
    flow_lifecycle_service=flow_lifecycle_service,
    message_delivery_service=message_delivery_service,
    generative_reply_service=generative_reply_service,
    bot_control_service=bot_control_service
)

# Follow-up scheduler for idle flows
follow_up_scheduler_service = FollowUpSchedulerService(
    log_util=log_util,
    flow_store=flow_store,
    flow_lifecycle_service=flow_lifecycle_service,
    message_delivery_service=message_delivery_service,
    check_interval_seconds=environment_utils.get_env_variable("FOLLOW_UP_CHECK_INTERVAL_SECONDS")
)

# Define lifespan function
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    try:
        await flow_store.load()
    except FlowStoreException as e:
        log_util.error(service_name="OutreachFlowService", message=f"Refusing to start with an unreadable flow snapshot: {e.message}")
        raise

    if environment_utils.get_env_variable("FOLLOW_UP_SCHEDULER_ENABLED"):
        await follow_up_scheduler_service.start()

    log_util.info(service_name="OutreachFlowService", message="Application startup complete")

    yield

    # Shutdown
    await follow_up_scheduler_service.stop()
    log_util.info(service_name="OutreachFlowService", message="Application shutdown complete")

# Create FastAPI app
app = FastAPI(
    title="outreach flow service",
    description="Scripted outreach funnel with stage tracking and automated follow-ups",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Flow management APIs
flow_api_router = create_flow_api(
    log_util=log_util,
    conversation_service=conversation_service,
    flow_lifecycle_service=flow_lifecycle_service,
    follow_up_scheduler_service=follow_up_scheduler_service
)
app.include_router(flow_api_router)

# Inbound messages from the channel service
webhook_message_router = create_webhook_message_api(
    log_util=log_util,
    conversation_service=conversation_service
)
app.include_router(webhook_message_router)

# Bot pause / manual mode controls
bot_control_router = create_bot_control_api(
    log_util=log_util,
    bot_control_service=bot_control_service
)
app.include_router(bot_control_router)

# Health check endpoint
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "outreach_flow_service",
        "flows": len(flow_store.all()),
        "follow_up_scheduler_running": follow_up_scheduler_service.is_running
    }

# Global exception handler for flow exceptions that escape a route
@app.exception_handler(FlowException)
async def flow_exception_handler(request: Request, exc: FlowException):
    log_util.error(service_name="OutreachFlowService", message=f"FlowException: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "error": exc.__class__.__name__,
            "status_code": exc.status_code
        },
        headers={"Content-Type": "application/json"}
    )

# Global exception handler for HTTPExceptions
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    log_util.error(service_name="OutreachFlowService", message=f"HTTPException: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": str(exc),
            "status_code": exc.status_code
        },
        headers={"Content-Type": "application/json"}
    )

# Global exception handler for any unhandled exceptions
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log_util.error(service_name="OutreachFlowService", message=f"Exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "status_code": 500
        },
        headers={"Content-Type": "application/json"}
    )

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=environment_utils.get_env_variable("HOST"),
        port=environment_utils.get_env_variable("PORT")
    )

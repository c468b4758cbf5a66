"""Demo/mock Rodin responses returned when no API key is configured."""

DEMO_TASK_UUID = "demo-task-0001"
DEMO_SUBSCRIPTION_KEY = "demo-subscription-0001"
DEMO_MODEL_URL = "https://hyper3d.ai/demo/model.glb"


def demo_submit(prompt: str) -> dict:
    return {
        "uuid": DEMO_TASK_UUID,
        "jobs": {
            "subscription_key": DEMO_SUBSCRIPTION_KEY,
            "uuids": [f"{DEMO_TASK_UUID}-job"],
        },
        "prompt": prompt,
        "isDemo": True,
    }


def demo_status(subscription_key: str) -> dict:
    return {
        "jobs": [{"uuid": f"{DEMO_TASK_UUID}-job", "status": "Done"}],
        "isDemo": True,
    }


def demo_download(task_uuid: str) -> dict:
    return {
        "list": [{"url": DEMO_MODEL_URL, "name": "model.glb"}],
        "isDemo": True,
    }

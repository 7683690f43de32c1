# tests/sample_data.py
"""测试共用的样例数据：审批上下文、流程定义和用户"""

MOCK_CONTEXT_DATA = {
    "resource": {
        "amount": 15000,
        "riskLevel": "high",
        "category": "payment",
        "tags": ["urgent", "international"],
    },
    "requester": {
        "id": "user123",
        "name": "John Doe",
        "email": "john@example.com",
        "role": "manager",
        "department": "finance",
        "supervisorId": "user456",
    },
    "currentApprover": {
        "id": "user456",
        "name": "Jane Smith",
        "email": "jane@example.com",
        "role": "director",
    },
    "workflow": {
        "currentStageId": "stage2",
        "previousStageId": "stage1",
        "iterationCount": 1,
    },
}

FLOW_DEFINITION = {
    "stages": [
        {
            "id": "review",
            "name": "Manager Review",
            "description": "Manager checks the request",
            "actor": "manager",
            "status": "in_process",
            "actorUserId": "user456",
            "transitions": [
                {
                    "to": "in_process",
                    "targetStageId": "finance",
                    "label": "Escalate",
                    "conditionGroups": [
                        {"id": "g1", "operator": "AND", "conditions": [
                            {"id": "c1", "field": "amount", "operator": ">", "value": 10000},
                        ]},
                    ],
                },
                {"to": "approved", "targetStageId": "done", "label": "Approve", "isDefault": True},
                {"to": "reject", "label": "Reject"},
            ],
        },
        {
            "id": "finance",
            "name": "Finance Review",
            "description": "Finance signs off large amounts",
            "actor": "finance",
            "status": "in_process",
            "maxIterations": 3,
            "transitions": [
                {"to": "approved", "targetStageId": "done"},
                {"to": "reject"},
            ],
        },
        {
            "id": "done",
            "name": "Approved",
            "description": "Request approved",
            "actor": "system",
            "status": "approved",
            "transitions": [],
        },
        {
            "id": "rejected",
            "name": "Rejected",
            "description": "Request rejected",
            "actor": "system",
            "status": "reject",
            "transitions": [],
        },
    ]
}

USERS = [
    {"id": "user123", "name": "John Doe", "email": "john@example.com", "role": "manager", "supervisorId": "user456"},
    {"id": "user456", "name": "Jane Smith", "email": "jane@example.com", "role": "director", "supervisorId": "user789"},
    {"id": "user789", "name": "Ada Chief", "email": "ada@example.com", "role": "cfo"},
]


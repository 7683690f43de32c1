# tests/conftest.py
"""
approvalflow 测试配置和共享 fixtures
"""

import copy
import os
import tempfile
from pathlib import Path

import pytest

from approvalflow import EvaluationContext
from tests.sample_data import FLOW_DEFINITION, MOCK_CONTEXT_DATA, USERS


@pytest.fixture
def context_data():
    return copy.deepcopy(MOCK_CONTEXT_DATA)


@pytest.fixture
def mock_context(context_data):
    """提供与审批单对应的完整求值上下文"""
    return EvaluationContext.from_dict(context_data)


@pytest.fixture
def flow_definition_dict():
    """提供一个同时使用阶段 id 和状态寻址的流程定义"""
    return copy.deepcopy(FLOW_DEFINITION)


@pytest.fixture
def simple_definition_dict():
    return {
        "stages": [
            {"id": "a", "name": "Draft", "description": "", "actor": "requester",
             "status": "in_process", "transitions": [{"to": "approved"}]},
            {"id": "b", "name": "Done", "description": "", "actor": "system",
             "status": "approved", "transitions": []},
        ]
    }


@pytest.fixture
def users():
    return copy.deepcopy(USERS)


@pytest.fixture(scope="function")
def isolated_filesystem():
    """
    提供一个隔离的临时文件系统，并切换当前工作目录。
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        original_cwd = os.getcwd()
        os.chdir(temp_path)
        yield temp_path
        os.chdir(original_cwd)


@pytest.fixture
def runner():
    """提供一个 Click CliRunner 实例用于测试 CLI 命令"""
    from click.testing import CliRunner
    return CliRunner()

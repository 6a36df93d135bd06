# models/__init__.py
# Инициализация моделей

from .user import User
from .contest import Contest
from .sample import Sample
from .physical_evaluation import PhysicalEvaluation
from .judge_assignment import JudgeAssignment
from .sensory_evaluation import SensoryEvaluation
from .final_evaluation import FinalEvaluation
from .top_result import TopResult
from .notification import Notification

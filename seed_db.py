"""One-time DB setup: create tables and seed a starter question bank."""
import uuid

from quizapp.core.security import create_access_token
from quizapp.db.models import DifficultyEnum, Question
from quizapp.db.session import Base, get_engine, get_session_factory

# (category, difficulty, text, options, correct answer, explanation)
SAMPLE_QUESTIONS = [
    (
        "AI Safety", DifficultyEnum.EASY,
        "What does the term 'alignment' refer to in AI safety?",
        ["Making AI systems pursue their designers' intended goals",
         "Arranging GPUs in a data center",
         "Sorting training data by length",
         "Calibrating a robot's joints"],
        "Making AI systems pursue their designers' intended goals",
        "Alignment is about ensuring a system's objectives match what humans intend.",
    ),
    (
        "AI Safety", DifficultyEnum.MEDIUM,
        "Which technique trains a model from human preference comparisons?",
        ["RLHF", "Dropout", "Batch normalization", "Gradient clipping"],
        "RLHF",
        "Reinforcement learning from human feedback fits a reward model to preferences.",
    ),
    (
        "Robotics", DifficultyEnum.EASY,
        "What does SLAM stand for in robotics?",
        ["Simultaneous Localization and Mapping",
         "Sequential Learning and Motion",
         "Sensor Linked Actuator Module",
         "Standard Lidar Array Mount"],
        "Simultaneous Localization and Mapping",
        None,
    ),
    (
        "Robotics", DifficultyEnum.HARD,
        "Which quantity maps joint velocities to end-effector velocities?",
        ["The Jacobian", "The Hessian", "The Laplacian", "The covariance matrix"],
        "The Jacobian",
        None,
    ),
    (
        "Quantum Computing", DifficultyEnum.EASY,
        "What is the basic unit of quantum information?",
        ["Qubit", "Quark", "Photon", "Byte"],
        "Qubit",
        None,
    ),
    (
        "Quantum Computing", DifficultyEnum.MEDIUM,
        "Which algorithm factors integers in polynomial time on a quantum computer?",
        ["Shor's algorithm", "Grover's algorithm", "Dijkstra's algorithm", "Simon's algorithm"],
        "Shor's algorithm",
        "Grover's algorithm gives a quadratic speedup for unstructured search instead.",
    ),
    (
        "Generative AI", DifficultyEnum.EASY,
        "What does the 'T' in GPT stand for?",
        ["Transformer", "Tensor", "Token", "Training"],
        "Transformer",
        None,
    ),
    (
        "Generative AI", DifficultyEnum.MEDIUM,
        "Diffusion models generate images by learning to reverse which process?",
        ["Gradual noising", "Image compression", "Edge detection", "Color quantization"],
        "Gradual noising",
        None,
    ),
    (
        "Latest Developments", DifficultyEnum.MEDIUM,
        "What is a 'context window' in a large language model?",
        ["The maximum number of tokens the model can attend to at once",
         "The GUI window that shows model output",
         "The time a model takes to answer",
         "The number of GPUs used in training"],
        "The maximum number of tokens the model can attend to at once",
        None,
    ),
    (
        "Personalities", DifficultyEnum.EASY,
        "Who proposed the 'Imitation Game' as a test of machine intelligence?",
        ["Alan Turing", "John von Neumann", "Claude Shannon", "Ada Lovelace"],
        "Alan Turing",
        None,
    ),
    (
        "Brands", DifficultyEnum.EASY,
        "Which company develops the CUDA GPU programming platform?",
        ["NVIDIA", "AMD", "Intel", "Qualcomm"],
        "NVIDIA",
        None,
    ),
]

# 1. Create all tables
engine = get_engine()
Base.metadata.create_all(bind=engine)
print("✅ All tables created")

session_factory = get_session_factory()
with session_factory() as db:
    # 2. Sample questions (skipped when a question with the same text exists)
    created = 0
    for category, difficulty, text, options, correct, explanation in SAMPLE_QUESTIONS:
        if db.query(Question).filter(Question.text == text).first():
            continue
        db.add(
            Question(
                text=text,
                category=category,
                difficulty=difficulty,
                options=options,
                correct_answer=correct,
                explanation=explanation,
                points=10.0,
                is_active=True,
            )
        )
        created += 1
    db.commit()
    print(f"✅ Seeded {created} question(s) ({len(SAMPLE_QUESTIONS) - created} already present)")

# 3. Development token for trying the API locally
dev_user_id = uuid.uuid4()
token = create_access_token({"sub": str(dev_user_id)})
print(f"\nDev learner id: {dev_user_id}")
print(f"Dev bearer token: {token}")

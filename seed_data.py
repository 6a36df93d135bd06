# seed_data.py
# Наполнение базы тестовыми данными: конкурс, участники, судьи, образцы на разных этапах

from datetime import date, timedelta

from app import create_app
from extensions import db
from models import (User, Contest, Sample, PhysicalEvaluation, JudgeAssignment,
                    SensoryEvaluation, FinalEvaluation, TopResult, Notification)
from logic import assignments, contests, intake, physical, sensory, users

BEAN_DETAILS = {
    'country': 'Colombia',
    'farm_name': 'Finca La Esperanza',
    'owner_full_name': 'Maria Gomez',
    'department': 'Huila',
    'variety': 'Trinitario',
    'quantity_kg': 3,
}

GOOD_BEANS = {
    'percentage_humidity': 6.5,
    'broken_grains': 4,
    'flat_grains': 5,
    'well_fermented_beans': 70,
    'lightly_fermented_beans': 10,
    'purple_beans': 5,
}


def uniform_sheet(value):
    """Лист, в котором все оцениваемые группы и атрибуты равны value."""
    return {
        'cacao': value, 'bitterness': value, 'astringency': value, 'caramel_panela': value,
        'roast_degree': value,
        'acidity': {'frutal': value},
        'fresh_fruit': {'berries': value},
        'brown_fruit': {'dry': value},
        'vegetal': {'grass_herb': value},
        'floral': {'orange_blossom': value},
        'wood': {'light': value},
        'spice': {'spices': value},
        'nut': {'kernel': value},
    }


app = create_app()

with app.app_context():
    db.create_all()

    # --- 1. ОЧИСТКА ДАННЫХ ---
    print("Очистка старых данных...")
    # Идем в обратном порядке зависимостей
    for model in (Notification, TopResult, FinalEvaluation, SensoryEvaluation, JudgeAssignment,
                  PhysicalEvaluation, Sample, Contest, User):
        db.session.query(model).delete()
    db.session.commit()
    print("Очистка завершена.")

    # --- 2. СОЗДАНИЕ ДАННЫХ ---
    print("Добавление тестовых данных...")

    admin = users.register_user(name='Admin', email='admin@example.com', role='admin', code='000001')
    director = users.register_user(name='Director', email='director@example.com', role='director', code='300001')
    participants = [
        users.register_user(name=f'Producer {i}', email=f'producer{i}@example.com', code=f'10000{i}')
        for i in range(1, 4)
    ]
    judges = [
        users.register_user(name=f'Judge {i}', email=f'judge{i}@example.com', role='judge', code=f'20000{i}')
        for i in range(1, 4)
    ]
    users.register_user(name='Evaluator', email='evaluator@example.com', role='evaluator', code='400001')

    today = date.today()
    contest = contests.create_contest(
        director, 'Cocoa of Excellence', today - timedelta(days=1), today + timedelta(days=14),
        location='Bogota',
    )

    samples = []
    for participant in participants:
        sample = intake.create_sample(participant, contest.id, 'bean', dict(BEAN_DETAILS), submit=True)
        intake.receive_sample(director, sample.id)
        samples.append(sample)

    # Первый образец дисквалифицируется по битым зернам, остальные проходят
    physical.save_physical_evaluation(director, samples[0].id, dict(GOOD_BEANS, broken_grains=12))
    for sample in samples[1:]:
        physical.save_physical_evaluation(director, sample.id, dict(GOOD_BEANS))

    approved = [s.id for s in samples[1:]]
    assignments.assign_judges(director, approved, [j.id for j in judges])

    for judge, value in zip(judges, (8, 7, 9)):
        sensory.save_sensory_evaluation(judge, approved[0], uniform_sheet(value))
    sensory.save_sensory_evaluation(judges[0], approved[1], uniform_sheet(6))

    print("Тестовые данные успешно добавлены!")
    print(f"Коды доступа: admin {admin.code}, director {director.code}, "
          f"participants {[p.code for p in participants]}, judges {[j.code for j in judges]}")

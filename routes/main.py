# routes/main.py
# Маршруты участников, судей и экспертов. Вся логика - в пакете logic.

from functools import wraps
from datetime import date

from flask import Blueprint, g, jsonify, request

from models import Sample
from errors import ConstraintViolation, PermissionDenied
from logic import assignments, contests, final, intake, notifications, policy, ranking, sensory
from logic.base import get_or_404
from routes.auth import current_user

main_bp = Blueprint('main', __name__)


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            return jsonify({'error': 'unauthorized', 'message': 'Login required'}), 401
        g.user = user
        return f(*args, **kwargs)
    return decorated_function


def _payload():
    return request.get_json(silent=True) or {}


def parse_date(value, field):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ConstraintViolation(f'{field} must be an ISO date (YYYY-MM-DD)')


def serialize_sample(sample):
    return {
        'id': sample.id,
        'contest_id': sample.contest_id,
        'user_id': sample.user_id,
        'product_type': sample.product_type,
        'status': sample.status,
        'evaluation_status': assignments.derived_status(sample),
        'tracking_code': sample.tracking_code,
        'internal_code': sample.internal_code,
        'details': sample.details,
    }


@main_bp.route('/dashboard')
@login_required
def dashboard():
    user = g.user
    data = {
        'id': user.id,
        'name': user.display_name,
        'role': user.role,
        'unread_notifications': notifications.unread_count(user),
    }
    if user.role == policy.PARTICIPANT:
        data['samples'] = [serialize_sample(s) for s in user.samples]
    elif user.role == policy.JUDGE:
        data['assignments'] = [
            {'sample_id': a.sample_id, 'status': a.status}
            for a in assignments.assignments_for_judge(user)
        ]
    return jsonify(data)


# --- Конкурсы и рейтинг ---

@main_bp.route('/contests')
@login_required
def contest_list():
    return jsonify([contests.serialize_contest(c) for c in contests.list_contests()])


@main_bp.route('/contests/<int:contest_id>/ranking')
@login_required
def contest_ranking(contest_id):
    return jsonify([ranking.serialize_top_result(r) for r in ranking.top_results_for_contest(contest_id)])


@main_bp.route('/contests/<int:contest_id>/final-ranking')
@login_required
def contest_final_ranking(contest_id):
    rows = ranking.final_ranking(contest_id)
    for row in rows:
        if row['latest_evaluation_date']:
            row['latest_evaluation_date'] = row['latest_evaluation_date'].isoformat()
    return jsonify(rows)


# --- Образцы участника ---

@main_bp.route('/samples', methods=['POST'])
@login_required
def sample_create():
    data = _payload()
    sample = intake.create_sample(
        g.user,
        data.get('contest_id'),
        product_type=data.get('product_type', 'bean'),
        details=data.get('details'),
        submit=bool(data.get('submit')),
    )
    return jsonify(serialize_sample(sample)), 201


@main_bp.route('/samples/<int:sample_id>', methods=['GET'])
@login_required
def sample_detail(sample_id):
    sample = get_or_404(Sample, sample_id)
    policy.require_sample_viewer(g.user, sample)
    data = serialize_sample(sample)
    evaluation = sample.physical_evaluation
    if evaluation is not None:
        data['physical_evaluation'] = {
            'global_evaluation': evaluation.global_evaluation,
            'disqualification_reasons': evaluation.disqualification_reasons,
            'warnings': evaluation.warnings,
        }
    return jsonify(data)


@main_bp.route('/samples/<int:sample_id>', methods=['PATCH'])
@login_required
def sample_update(sample_id):
    data = _payload()
    sample = intake.update_draft(g.user, sample_id, details=data.get('details'),
                                 product_type=data.get('product_type'))
    return jsonify(serialize_sample(sample))


@main_bp.route('/samples/<int:sample_id>/submit', methods=['POST'])
@login_required
def sample_submit(sample_id):
    sample = intake.submit_sample(g.user, sample_id)
    return jsonify(serialize_sample(sample))


@main_bp.route('/track/<tracking_code>')
def track(tracking_code):
    # Публичная проверка, без входа
    return jsonify(intake.tracking_status(tracking_code))


# --- Судьи ---

@main_bp.route('/judge/assignments')
@login_required
def judge_assignments():
    policy.require_role(g.user, policy.JUDGE)
    status = request.args.get('status')
    return jsonify([
        {
            'sample_id': a.sample_id,
            'tracking_code': a.sample.tracking_code,
            'status': a.status,
            'assigned_at': a.assigned_at.isoformat() if a.assigned_at else None,
        }
        for a in assignments.assignments_for_judge(g.user, status=status)
    ])


@main_bp.route('/samples/<int:sample_id>/start', methods=['POST'])
@login_required
def sample_start(sample_id):
    assignment = assignments.start_evaluation(g.user, sample_id)
    return jsonify({'sample_id': assignment.sample_id, 'status': assignment.status})


@main_bp.route('/samples/<int:sample_id>/sensory', methods=['POST', 'PUT'])
@login_required
def sensory_save(sample_id):
    data = _payload()
    evaluation_date = data.get('evaluation_date')
    evaluation = sensory.save_sensory_evaluation(
        g.user, sample_id,
        data.get('scores') or {},
        verdict=data.get('verdict', 'Approved'),
        reasons=data.get('disqualification_reasons'),
        flavor_comments=data.get('flavor_comments'),
        producer_recommendations=data.get('producer_recommendations'),
        additional_positive=data.get('additional_positive'),
        sample_notes=data.get('sample_notes'),
        evaluation_date=parse_date(evaluation_date, 'evaluation_date') if evaluation_date else None,
    )
    return jsonify(sensory.serialize_evaluation(evaluation))


@main_bp.route('/samples/<int:sample_id>/sensory', methods=['GET'])
@login_required
def sensory_detail(sample_id):
    judge_id = request.args.get('judge_id', type=int)
    evaluation = sensory.get_sensory_evaluation(g.user, sample_id, judge_id=judge_id)
    return jsonify(sensory.serialize_evaluation(evaluation))


@main_bp.route('/samples/<int:sample_id>/evaluations')
@login_required
def sample_evaluations(sample_id):
    rows = sensory.evaluations_for_sample(g.user, sample_id)
    return jsonify([sensory.serialize_evaluation(e) for e in rows])


# --- Эксперты финального этапа ---

@main_bp.route('/samples/<int:sample_id>/final', methods=['POST', 'PUT'])
@login_required
def final_save(sample_id):
    data = _payload()
    evaluation = final.save_final_evaluation(
        g.user, sample_id, data.get('scores') or {},
        flavor_comments=data.get('flavor_comments'),
        producer_recommendations=data.get('producer_recommendations'),
        additional_positive=data.get('additional_positive'),
    )
    return jsonify(final.serialize_final(evaluation))


# --- Уведомления ---

@main_bp.route('/notifications')
@login_required
def notification_list():
    unread_only = request.args.get('unread') in ('1', 'true', 'yes')
    limit = request.args.get('limit', type=int)
    rows = notifications.list_notifications(g.user, unread_only=unread_only, limit=limit)
    return jsonify({
        'unread': notifications.unread_count(g.user),
        'items': [n.to_dict() for n in rows],
    })


@main_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@login_required
def notification_read(notification_id):
    read = _payload().get('read', True)
    note = notifications.mark_read(g.user, notification_id, read=bool(read))
    return jsonify(note.to_dict())


@main_bp.route('/notifications/read-all', methods=['POST'])
@login_required
def notification_read_all():
    return jsonify({'updated': notifications.mark_all_read(g.user)})


@main_bp.route('/notifications/<int:notification_id>', methods=['DELETE'])
@login_required
def notification_delete(notification_id):
    notifications.delete_notification(g.user, notification_id)
    return jsonify({'status': 'deleted'})


@main_bp.route('/notifications', methods=['POST'])
@login_required
def notification_create():
    # Уведомления создаются только событиями конвейера
    raise PermissionDenied('Notifications cannot be created directly')

# routes/admin.py
# Маршруты администратора и директора конкурса

from functools import wraps

from flask import Blueprint, g, jsonify, request

from models import Contest, Sample
from logic import assignments, contests, intake, physical, policy, ranking, sensory, users
from logic.base import get_or_404, transactional
from routes.auth import current_user
from routes.main import parse_date, serialize_sample

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def staff_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            return jsonify({'error': 'unauthorized', 'message': 'Login required'}), 401
        if not policy.is_staff(user):
            return jsonify({'error': 'permission_denied', 'message': 'Staff only'}), 403
        g.user = user
        return f(*args, **kwargs)
    return decorated_function


def _payload():
    return request.get_json(silent=True) or {}


# --- Пользователи ---

@admin_bp.route('/users', methods=['POST'])
@staff_required
def user_create():
    policy.require_role(g.user, policy.ADMIN)
    data = _payload()
    user = users.register_user(
        name=data.get('name'),
        email=data.get('email'),
        role=data.get('role', 'participant'),
        code=data.get('code'),
    )
    return jsonify({'id': user.id, 'code': user.code, 'role': user.role}), 201


# --- Конкурсы ---

@admin_bp.route('/contests', methods=['POST'])
@staff_required
def contest_create():
    data = _payload()
    contest = contests.create_contest(
        g.user,
        data.get('name'),
        parse_date(data.get('start_date'), 'start_date'),
        parse_date(data.get('end_date'), 'end_date'),
        location=data.get('location'),
    )
    return jsonify(contests.serialize_contest(contest)), 201


@admin_bp.route('/contests/<int:contest_id>/samples')
@staff_required
def contest_samples(contest_id):
    contest = get_or_404(Contest, contest_id)
    policy.require_contest_manager(g.user, contest)
    status = request.args.get('status')
    query = Sample.query.filter_by(contest_id=contest.id)
    if status:
        query = query.filter_by(status=status)
    return jsonify([serialize_sample(s) for s in query.order_by(Sample.id)])


@admin_bp.route('/contests/<int:contest_id>/final-stage', methods=['POST'])
@staff_required
def contest_final_stage(contest_id):
    contest = contests.enter_final_stage(g.user, contest_id)
    return jsonify(contests.serialize_contest(contest))


@admin_bp.route('/contests/<int:contest_id>/complete', methods=['POST'])
@staff_required
def contest_complete(contest_id):
    contest = contests.complete_contest(g.user, contest_id)
    return jsonify(contests.serialize_contest(contest))


# --- Прием и физическая оценка ---

@admin_bp.route('/samples/<int:sample_id>/receive', methods=['POST'])
@staff_required
def sample_receive(sample_id):
    sample = intake.receive_sample(g.user, sample_id)
    return jsonify(serialize_sample(sample))


@admin_bp.route('/samples/<int:sample_id>/physical', methods=['POST', 'PUT'])
@staff_required
def sample_physical(sample_id):
    data = _payload()
    evaluation, result = physical.save_physical_evaluation(
        g.user, sample_id, data.get('measurements') or {}, notes=data.get('notes', ''),
    )
    return jsonify({
        'sample_id': evaluation.sample_id,
        'sample_status': evaluation.sample.status,
        'verdict': result.verdict,
        'reasons': result.reasons,
        'warnings': result.warnings,
    })


@admin_bp.route('/samples/<int:sample_id>/approve', methods=['POST'])
@staff_required
def sample_approve(sample_id):
    sample = physical.approve_sample(g.user, sample_id)
    return jsonify(serialize_sample(sample))


# --- Назначение судей ---

@admin_bp.route('/assignments', methods=['POST'])
@staff_required
def assignment_create():
    data = _payload()
    sample_ids = data.get('sample_ids') or [data.get('sample_id')]
    judge_ids = data.get('judge_ids') or [data.get('judge_id')]
    created = assignments.assign_judges(g.user, sample_ids, judge_ids)
    return jsonify({
        'created': [{'sample_id': a.sample_id, 'judge_id': a.judge_id} for a in created],
    }), 201


@admin_bp.route('/samples/<int:sample_id>/judges/<int:judge_id>', methods=['DELETE'])
@staff_required
def assignment_delete(sample_id, judge_id):
    assignments.unassign_judge(g.user, sample_id, judge_id)
    return jsonify({'status': 'deleted'})


@admin_bp.route('/judges/workload')
@staff_required
def judge_workload():
    workload = assignments.judge_workload()
    return jsonify([{'judge_id': jid, 'open_assignments': n} for jid, n in workload.items()])


@admin_bp.route('/samples/<int:sample_id>/finalize', methods=['POST'])
@staff_required
def sample_finalize(sample_id):
    sample = assignments.finalize_sample(g.user, sample_id)
    return jsonify(serialize_sample(sample))


@admin_bp.route('/sensory/<int:evaluation_id>', methods=['DELETE'])
@staff_required
def sensory_delete(evaluation_id):
    sensory.delete_sensory_evaluation(g.user, evaluation_id)
    return jsonify({'status': 'deleted'})


# --- Рейтинг ---

@admin_bp.route('/rankings/recompute', methods=['POST'])
@staff_required
def rankings_recompute():
    policy.require_role(g.user, policy.ADMIN)
    rows = transactional(ranking.recompute_top_results)()
    return jsonify({'rows': len(rows)})

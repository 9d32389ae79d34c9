import pytest

from models import db, Generation
import predictions
import prompt_enhancer
import storage


class FakePrediction:
    def __init__(self, id, status, output=None, error=None, model=None):
        self.id = id
        self.status = status
        self.output = output
        self.error = error
        self.model = model
        self.version = None
        self.urls = {'get': f"https://api.replicate.com/v1/predictions/{id}"}
        self.metrics = None
        self.created_at = "2026-01-01T00:00:00Z"
        self.completed_at = None


class FakePredictions:
    """Returns queued statuses one poll at a time, then the final output"""

    def __init__(self, output, statuses=('starting', 'processing', 'succeeded'), error=None):
        self.output = output
        self.statuses = list(statuses)
        self.error = error
        self.created = []
        self.polls = 0

    def _current(self):
        status = self.statuses[min(self.polls, len(self.statuses) - 1)]
        output = self.output if status == 'succeeded' else None
        return FakePrediction("pred_1", status, output=output, error=self.error, model="owner/model")

    def create(self, model=None, version=None, input=None):
        self.created.append({'model': model, 'version': version, 'input': input})
        return self._current()

    def get(self, prediction_id):
        self.polls += 1
        return self._current()


class FakeReplicate:
    def __init__(self, predictions):
        self.predictions = predictions


@pytest.fixture
def replicate_output(app):
    def _install(output, **kwargs):
        fake = FakePredictions(output, **kwargs)
        app.extensions['replicate'] = FakeReplicate(fake)
        return fake
    return _install


def test_image_2_polls_until_done_and_stores_each_image(client, login, replicate_output):
    fake = replicate_output(["https://replicate.delivery/a.png", "https://replicate.delivery/b.png"])
    login("user_rep")

    response = client.post("/api/image-2", json={'prompt': "mountain lake", 'amount': "2", 'resolution': "1024x768"})

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['urls'] == ["https://replicate.delivery/a.png", "https://replicate.delivery/b.png"]
    assert body['usedPrompt'] == "mountain lake, , high quality, detailed"
    assert body['prediction']['id'] == "pred_1"
    assert fake.polls == 2
    assert fake.created == [{
        'model': "minimax/image-01",
        'version': None,
        'input': {'prompt': "mountain lake, , high quality, detailed", 'aspect_ratio': "4:3", 'num_outputs': 2},
    }]

    rows = db.session.query(Generation).order_by(Generation.id).all()
    assert [row.capability for row in rows] == ['image', 'image']
    assert [row.output['url'] for row in rows] == body['urls']
    assert rows[0].meta['replicate_id'] == "pred_1"
    assert rows[0].meta['aspect_ratio'] == "4:3"


def test_image_2_advanced_model_enhancement(client, login, replicate_output):
    fake = replicate_output("https://replicate.delivery/a.png")
    login()

    response = client.post("/api/image-2", json={'prompt': "owl", 'model': "free-model-advanced"})

    assert response.get_json()['urls'] == ["https://replicate.delivery/a.png"]
    sent = fake.created[0]['input']
    assert sent['prompt'].startswith("owl, professional photography")
    assert sent['aspect_ratio'] == "1:1"
    assert sent['num_outputs'] == 1


@pytest.mark.parametrize("path", ["/api/image-2", "/api/video", "/api/audio"])
def test_blank_prompt_is_bad_request(client, login, replicate_output, path):
    fake = replicate_output("https://replicate.delivery/x")
    login()

    response = client.post(path, json={'prompt': "  "})

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Prompt is required"
    assert fake.created == []


@pytest.mark.parametrize("path", ["/api/image-2", "/api/video", "/api/audio"])
def test_failed_prediction_is_500_without_record(client, login, replicate_output, path):
    replicate_output(None, statuses=('starting', 'failed'), error="NSFW content detected")
    login()

    response = client.post(path, json={'prompt': "a storm"})

    assert response.status_code == 500
    assert db.session.query(Generation).count() == 0


def test_missing_token_is_500(app, client, login):
    app.extensions['replicate'] = None
    login()

    response = client.post("/api/audio", json={'prompt': "lofi beat"})

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Replicate API token not configured"


def test_video_is_enhanced_stored_and_listed(client, login, replicate_output):
    fake = replicate_output("https://replicate.delivery/v/output-0.mp4")
    storage.get_or_create_user("user_vid")
    login("user_vid")

    response = client.post("/api/video", json={'prompt': "cat playing with yarn"})

    body = response.get_json()
    assert body['videoUrl'] == "https://replicate.delivery/v/output-0.mp4"
    assert body['usedPrompt'] == prompt_enhancer.enhance_video_prompt("cat playing with yarn")
    assert fake.created[0]['version'] == "3a7e6cdc3f95192092fa47346a73c28d1373d1499f3b62cdea25efe355823afb"

    videos = client.get("/api/video/user-videos").get_json()
    assert len(videos) == 1
    assert videos[0]['prompt'] == "cat playing with yarn"
    assert videos[0]['output'] == {'url': "https://replicate.delivery/v/output-0.mp4"}


def test_audio_accepts_dict_output(client, login, replicate_output):
    replicate_output({'audio': "https://replicate.delivery/a/out.wav"}, statuses=('succeeded',))
    login()

    response = client.post("/api/audio", json={'prompt': "jazz piano"})

    assert response.get_json()['audioUrl'] == "https://replicate.delivery/a/out.wav"
    row = db.session.query(Generation).one()
    assert row.capability == 'audio'
    assert row.output == {'url': "https://replicate.delivery/a/out.wav"}


def test_prompt_tips(client, login):
    login()

    image_tips = client.options("/api/image-2").get_json()['promptTips']
    video_tips = client.options("/api/video").get_json()['promptTips']

    assert image_tips['modelTypes'] == ["free-model-basic", "free-model-advanced"]
    assert video_tips['examples']['enhanced'].startswith("cinematic, cat playing with yarn")


def test_poll_gives_up_after_max_attempts(app, replicate_output, monkeypatch):
    replicate_output(None, statuses=('processing',))
    monkeypatch.setattr(predictions, "MAX_POLL_ATTEMPTS", 3)

    with pytest.raises(predictions.PredictionError, match="timed out"):
        predictions.run_prediction("owner/model", {'prompt': "x"})


@pytest.mark.parametrize("ref, expected", [
    ("owner/model", {'model': "owner/model", 'version': None}),
    ("owner/model:abc123", {'model': None, 'version': "abc123"}),
    ("abc123", {'model': None, 'version': "abc123"}),
])
def test_model_reference_forms(app, replicate_output, ref, expected):
    fake = replicate_output("https://x/y.png", statuses=('succeeded',))

    predictions.run_prediction(ref, {'prompt': "x"})

    assert {key: fake.created[0][key] for key in ('model', 'version')} == expected


def test_unexpected_output_format():
    with pytest.raises(predictions.PredictionError):
        predictions.output_urls(42)
    assert predictions.output_urls(["a", "b"]) == ["a", "b"]

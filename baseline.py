"""
Majority-class baseline for food-stamp recipiency.
Reference point for the report: what accuracy does "always predict the common class" get?
"""

from sklearn.dummy import DummyClassifier

from evaluation import binary_confusion, score_binary


def run_baseline(train_split, eval_split):
    """Fit DummyClassifier(most_frequent) on train; score on eval."""
    m = DummyClassifier(strategy="most_frequent")
    m.fit(train_split.X, train_split.y)
    pred = m.predict(eval_split.X)
    out = score_binary(eval_split.y, pred)
    out["majority_class"] = int(m.classes_[m.class_prior_.argmax()])
    out["confusion_matrix"] = binary_confusion(eval_split.y, pred)
    print(f"[baseline] majority class={out['majority_class']}, accuracy={out['accuracy']:.4f}")
    return out

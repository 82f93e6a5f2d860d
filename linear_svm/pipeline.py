"""
Train/evaluate pipeline for the linear SVM, and its command-line entry point.

Stages run strictly forward:

    validation -> loading -> training -> evaluation -> save

The model handle produced by loading is passed explicitly to training, then
to evaluation, then to the save stage.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .data import DataLoader, TrainingData, number_of_classes
from .evaluation import ModelEvaluator, EvaluationResult
from .models import LinearSVM, ModelPersistence
from .training import SVMTrainer, detect_parallel_backend
from .utils.config import TrainEvalConfig, build_config, load_config, DEFAULT_STEP_SIZE
from .utils.errors import LinearSVMError
from .utils.logger import setup_logging_from_config
from .utils.validation import OptionValidator

logger = logging.getLogger(__name__)


@dataclass
class LoadedInputs:
    """Output of the loading stage."""
    model: LinearSVM
    training_data: Optional[TrainingData]
    num_classes: int


class LinearSVMPipeline:
    """
    Orchestrates one train/evaluate invocation.
    """

    def __init__(self, config: TrainEvalConfig, parallel_available: Optional[bool] = None):
        """
        Initialize pipeline.

        Args:
            config: Resolved options
            parallel_available: Parallel backend capability; probed when None
        """
        self.config = config
        self.validator = OptionValidator()
        self.data_loader = DataLoader()
        self.persistence = ModelPersistence()
        self.evaluator = ModelEvaluator()
        if parallel_available is None:
            parallel_available = detect_parallel_backend(config)
        self.parallel_available = parallel_available
        self.warnings: List[str] = []

    def run(self) -> Dict[str, Any]:
        """
        Run every stage in order.

        Returns:
            Dictionary with the model, evaluation result and a summary per stage
        """
        results: Dict[str, Any] = {}
        stage = 'validation'
        try:
            self.warnings = self.validator.validate(self.config)
            results['validation'] = {'warnings': list(self.warnings)}

            stage = 'loading'
            inputs = self._run_loading_stage()
            model = inputs.model
            results['loading'] = {
                'num_classes': inputs.num_classes,
                'training_points': inputs.training_data.n_points if inputs.training_data else 0,
            }

            if inputs.training_data is not None:
                stage = 'training'
                model = self._run_training_stage(model, inputs.training_data, inputs.num_classes)
                results['training'] = dict(model.training_info)

            evaluation = None
            if self.config.test_file:
                stage = 'evaluation'
                evaluation = self._run_evaluation_stage(model, inputs.num_classes)
                results['evaluation'] = evaluation.to_dict()

            stage = 'save'
            results['save'] = self._run_save_stage(model, evaluation)
        except LinearSVMError:
            logger.debug(f"Pipeline stopped at stage '{stage}'")
            raise

        results['model'] = model
        results['evaluation_result'] = evaluation
        return results

    def _run_loading_stage(self) -> LoadedInputs:
        """Resolve training data, labels, class count and the model instance."""
        config = self.config
        training_data = None
        labels = None

        if config.training_file:
            training_set = self.data_loader.load_matrix(config.training_file)
            separate_labels = None
            if config.labels_file:
                separate_labels = self.data_loader.load_labels(config.labels_file)
            training_data = self.data_loader.resolve_training_data(training_set, separate_labels)
            labels = training_data.labels

        if config.input_model_file:
            model = self.persistence.load_model(config.input_model_file)
        else:
            model = LinearSVM()

        if labels is not None:
            num_classes = number_of_classes(config.number_of_classes, labels)
        else:
            num_classes = config.number_of_classes or model.num_classes
        logger.info(f"Number of classes: {num_classes}")

        return LoadedInputs(model=model, training_data=training_data, num_classes=num_classes)

    def _run_training_stage(self, model: LinearSVM, training_data: TrainingData, num_classes: int) -> LinearSVM:
        trainer = SVMTrainer(self.config, self.parallel_available)
        return trainer.train(model, training_data, num_classes)

    def _run_evaluation_stage(self, model: LinearSVM, num_classes: int) -> EvaluationResult:
        config = self.config
        test_set = self.data_loader.load_matrix(config.test_file)
        test_labels = None
        if config.test_labels_file:
            test_labels = self.data_loader.load_labels(config.test_labels_file)

        return self.evaluator.evaluate(
            model,
            test_set,
            test_labels=test_labels,
            compute_scores=bool(config.score_file),
            num_classes=num_classes
        )

    def _run_save_stage(self, model: LinearSVM, evaluation: Optional[EvaluationResult]) -> Dict[str, str]:
        """Write whichever outputs were requested."""
        config = self.config
        saved = {}

        if evaluation is not None:
            if config.score_file:
                saved['score'] = str(self.data_loader.save_matrix(evaluation.scores, config.score_file))
            if config.predictions_file:
                logger.info(f"Predicting classes of points in '{config.test_file}'.")
                saved['predictions'] = str(self.data_loader.save_labels(evaluation.predictions, config.predictions_file))
            if config.evaluation_file and evaluation.accuracy is not None:
                saved['evaluation'] = str(self.evaluator.save_evaluation_results(evaluation, config.evaluation_file))

        if config.output_model_file:
            extra = {'options': config.to_dict()}
            saved['model'] = str(self.persistence.save_model(model, config.output_model_file, extra))

        return saved


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='linear-svm',
        description=(
            'L2-regularized linear multiclass SVM. Train a model on labeled data '
            '(labels in the last column of the training file, or a separate labels '
            'file), load an existing model, or both; then optionally classify a test '
            'set and report accuracy against test labels.'
        ),
        epilog=(
            'Examples:\n'
            '  linear-svm -t data.csv -l labels.csv -L 0.1 -d 1.0 -M lsvm_model.pkl\n'
            '  linear-svm -m lsvm_model.pkl -T test.csv -P predictions.csv\n\n'
            'For psgd an iteration is a single point: to take one pass over the '
            'data set --max-iterations to the number of training points.'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('-C', '--config', default=None,
                        help='YAML file with default options')

    training = parser.add_argument_group('training')
    training.add_argument('-t', '--training', default=None,
                          help='Training set, one point per line')
    training.add_argument('-l', '--labels', default=None,
                          help='Labels for the training set (default: last column of the training set)')
    training.add_argument('-L', '--lambda', dest='lambda_', type=float, default=None,
                          help='L2-regularization parameter (default: 0.0001)')
    training.add_argument('-d', '--delta', type=float, default=None,
                          help='Margin between the correct class and the other classes (default: 1.0)')
    training.add_argument('-c', '--number-of-classes', type=int, default=None,
                          help='Number of classes; 0 counts the distinct training labels (default: 0)')
    training.add_argument('-N', '--no-intercept', action='store_true',
                          help='Do not fit an intercept term')
    training.add_argument('--seed', type=int, default=None,
                          help='Random seed for weight initialization and shuffling (default: 42)')

    optimizer = parser.add_argument_group('optimizer')
    optimizer.add_argument('-O', '--optimizer', default=None,
                           help="Optimizer: 'lbfgs' or 'psgd' (default: lbfgs)")
    optimizer.add_argument('-e', '--tolerance', type=float, default=None,
                           help='Convergence tolerance (default: 1e-10)')
    optimizer.add_argument('-n', '--max-iterations', type=int, default=None,
                           help='Maximum iterations, 0 for no limit (default: 10000)')
    optimizer.add_argument('-s', '--step-size', type=float, default=None,
                           help=f'Step size for psgd (default: {DEFAULT_STEP_SIZE})')
    optimizer.add_argument('-S', '--no-shuffle', action='store_true',
                           help="Don't shuffle the order in which psgd visits points")

    models = parser.add_argument_group('models')
    models.add_argument('-m', '--input-model', default=None,
                        help='Existing model to classify with or continue training')
    models.add_argument('-M', '--output-model', default=None,
                        help='Where to save the trained model')

    testing = parser.add_argument_group('testing')
    testing.add_argument('-T', '--test', default=None,
                         help='Test set, one point per line')
    testing.add_argument('-A', '--test-labels', default=None,
                         help='Labels of the test set; accuracy is reported when given')
    testing.add_argument('-P', '--predictions', default=None,
                         help='Where to save predicted labels for the test set')
    testing.add_argument('-p', '--score', default=None,
                         help='Where to save class scores for the test set')
    testing.add_argument('--evaluation-output', default=None,
                         help='Where to save the accuracy report as JSON')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        yaml_config = load_config(args.config) if args.config else None
        setup_logging_from_config(yaml_config.system if yaml_config else {}, verbose=args.verbose)
        config = build_config(args, yaml_config)

        pipeline = LinearSVMPipeline(config)
        pipeline.run()
        return 0

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1

    except LinearSVMError as e:
        # Configuration errors may be raised before logging is set up
        if not logging.getLogger().handlers:
            print(f"Error: {e}", file=sys.stderr)
        else:
            logger.error(str(e))
        return 1

    except Exception as e:
        print(f"\nlinear-svm failed: {e}", file=sys.stderr)
        logging.exception("Full error trace:")
        return 1

    finally:
        logging.shutdown()


if __name__ == "__main__":
    sys.exit(main())

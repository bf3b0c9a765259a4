# Generated migration for Lead model

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Lead',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('leadid', models.CharField(max_length=255, unique=True)),
                ('leadtype', models.CharField(choices=[('company', 'Company'), ('category', 'Category')], max_length=20)),
                ('prefix', models.CharField(blank=True, choices=[('', 'None'), ('Mr', 'Mr'), ('Ms', 'Ms'), ('Dr', 'Dr')], default='', max_length=10)),
                ('name', models.CharField(max_length=255)),
                ('mobile', models.CharField(blank=True, default='', max_length=50)),
                ('phone', models.CharField(blank=True, default='', max_length=50)),
                ('email', models.CharField(blank=True, default='', max_length=255)),
                ('date', models.DateField(db_index=True)),
                ('time', models.CharField(max_length=8)),
                ('category', models.CharField(db_index=True, max_length=255)),
                ('city', models.CharField(db_index=True, max_length=255)),
                ('area', models.CharField(blank=True, default='', max_length=255)),
                ('brancharea', models.CharField(blank=True, default='', max_length=255)),
                ('pincode', models.CharField(blank=True, default='', max_length=50)),
                ('branchpin', models.CharField(blank=True, default='', max_length=50)),
                ('dncmobile', models.PositiveSmallIntegerField(choices=[(0, 'Non-DND'), (1, 'DND')])),
                ('dncphone', models.PositiveSmallIntegerField(choices=[(0, 'Non-DND'), (1, 'DND')])),
                ('company', models.CharField(blank=True, default='', max_length=255)),
                ('parentid', models.CharField(blank=True, default='', max_length=255)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processed', 'Processed'), ('failed', 'Failed')], db_index=True, default='pending', max_length=20)),
                ('processing_time', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='lead',
            index=models.Index(fields=['leadtype', 'city', 'category'], name='leads_lead_leadtyp_4f1c2a_idx'),
        ),
    ]
